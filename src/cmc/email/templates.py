"""
Email templates for CryptoMine Capital.

Inline CSS only, since most email clients strip <style> blocks.
Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

from html import escape

APP_NAME = "CryptoMine Capital"

# Color constants
BG_PAGE = "#F4F6F8"
BG_CARD = "#FFFFFF"
BG_CODE = "#EEF2F7"
ACCENT = "#0B5FFF"
TEXT_PRIMARY = "#0A0A0A"
TEXT_SECONDARY = "#4A5568"
BORDER = "#E2E8F0"


def _base_layout(content: str) -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{APP_NAME}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BG_PAGE}; font-family: Arial, Helvetica, sans-serif;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: {BG_PAGE};">
        <tr>
            <td align="center" style="padding: 32px 16px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%;">
                    <tr>
                        <td align="center" style="padding-bottom: 24px; font-size: 22px; font-weight: 700; color: {TEXT_PRIMARY};">
                            {APP_NAME}
                        </td>
                    </tr>
                    <tr>
                        <td style="background-color: {BG_CARD}; border: 1px solid {BORDER}; border-radius: 10px; padding: 32px;">
                            {content}
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding-top: 24px;">
                            <p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
                                This email was sent by {APP_NAME}.
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""


def password_reset_otp(first_name: str | None, otp: str, expires_minutes: int = 10) -> tuple[str, str, str]:
    """
    One-time code for resetting a password.

    Returns:
        (subject, html_body, text_body)
    """
    name = escape(first_name or "Investor")
    subject = "Your password reset code"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 22px; margin: 0 0 16px 0;">Reset your password</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 15px; line-height: 1.6; margin: 0 0 8px 0;">Hi {name},</p>
<p style="color: {TEXT_SECONDARY}; font-size: 15px; line-height: 1.6; margin: 0 0 24px 0;">
    Use the code below to reset your {APP_NAME} password.
</p>
<p style="background-color: {BG_CODE}; border-radius: 8px; padding: 16px; text-align: center; font-size: 30px; letter-spacing: 8px; font-weight: 700; color: {ACCENT}; margin: 0 0 24px 0;">{otp}</p>
<p style="color: {TEXT_SECONDARY}; font-size: 13px; line-height: 1.5; margin: 0;">
    The code expires in <strong>{expires_minutes} minutes</strong> and can be used once.
    If you didn't request a reset, your password will remain unchanged.
</p>"""
    text_body = (
        f"Hi {first_name or 'Investor'},\n\n"
        f"Your {APP_NAME} password reset code is: {otp}\n\n"
        f"The code expires in {expires_minutes} minutes and can be used once.\n\n"
        f"If you didn't request a reset, your password will remain unchanged.\n\n"
        f"-- {APP_NAME}"
    )
    return subject, _base_layout(content), text_body


def password_reset_confirmation(first_name: str | None, reset_at: str, support_email: str) -> tuple[str, str, str]:
    """
    Confirmation that a password reset went through.

    Returns:
        (subject, html_body, text_body)
    """
    name = escape(first_name or "Investor")
    subject = "Your Password Has Been Reset"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 22px; margin: 0 0 16px 0;">Password Reset Successful</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 15px; line-height: 1.6; margin: 0 0 8px 0;">Hi {name},</p>
<p style="color: {TEXT_SECONDARY}; font-size: 15px; line-height: 1.6; margin: 0 0 16px 0;">
    This is a confirmation that your {APP_NAME} account password was reset on {escape(reset_at)}.
</p>
<p style="color: {TEXT_SECONDARY}; font-size: 15px; line-height: 1.6; margin: 0;">
    If you did not request this, contact
    <a href="mailto:{escape(support_email)}" style="color: {ACCENT};">{escape(support_email)}</a> immediately.
</p>"""
    text_body = (
        f"Hi {first_name or 'Investor'},\n\n"
        f"Your {APP_NAME} account password was reset on {reset_at}.\n\n"
        f"If you did not request this, contact {support_email} immediately.\n\n"
        f"-- {APP_NAME}"
    )
    return subject, _base_layout(content), text_body


def welcome_email(first_name: str | None) -> tuple[str, str, str]:
    """
    Welcome email sent after registration.

    Returns:
        (subject, html_body, text_body)
    """
    name = escape(first_name or "Investor")
    subject = f"Welcome to {APP_NAME}"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 22px; margin: 0 0 16px 0;">Welcome aboard!</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 15px; line-height: 1.6; margin: 0 0 8px 0;">Hi {name},</p>
<p style="color: {TEXT_SECONDARY}; font-size: 15px; line-height: 1.6; margin: 0;">
    Your account has been created. Your dashboard is ready and will populate once your
    first investment is activated.
</p>"""
    text_body = (
        f"Hi {first_name or 'Investor'},\n\n"
        f"Welcome to {APP_NAME}! Your account has been created. Your dashboard will "
        f"populate once your first investment is activated.\n\n"
        f"-- {APP_NAME}"
    )
    return subject, _base_layout(content), text_body
