"""CryptoMine Capital API."""
