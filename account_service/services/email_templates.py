"""Subjects and HTML bodies for account emails."""

from html import escape
from typing import Tuple

_LAYOUT = """
<html>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background-color: #0b2545; padding: 30px; border-radius: 10px; text-align: center;">
            <h1 style="color: #eef4ed; margin: 0;">Bank of Atlantic</h1>
        </div>

        <div style="padding: 30px 0;">
            <h2 style="color: #1e293b; margin-bottom: 20px;">{heading}</h2>

            <p style="color: #475569; line-height: 1.6; margin-bottom: 20px;">{intro}</p>

            <div style="text-align: center; margin: 30px 0;">
                <a href="{link}"
                   style="background-color: #13315c; color: white; padding: 15px 30px;
                          text-decoration: none; border-radius: 5px; display: inline-block;
                          font-weight: bold;">
                    {action}
                </a>
            </div>

            <p style="color: #64748b; font-size: 14px;">
                If the button does not work, paste this link into your browser:<br>
                <a href="{link}">{link}</a>
            </p>

            <p style="color: #64748b; font-size: 14px; margin-top: 20px;">{footer}</p>
        </div>
    </body>
</html>
"""


def _describe_ttl(minutes: int) -> str:
    if minutes % 60 == 0:
        hours = minutes // 60
        return "1 hour" if hours == 1 else f"{hours} hours"
    return "1 minute" if minutes == 1 else f"{minutes} minutes"


def verification_email(link: str, first_name: str = "", ttl_minutes: int = 24 * 60) -> Tuple[str, str]:
    greeting = f"Welcome, {escape(first_name)}!" if first_name else "Welcome!"
    html = _LAYOUT.format(
        heading=greeting,
        intro="Thank you for opening an account. Please confirm your email address to activate it.",
        link=escape(link, quote=True),
        action="Verify email",
        footer=(
            f"This link expires in {_describe_ttl(ttl_minutes)}. "
            "If you did not create an account, you can ignore this email."
        ),
    )
    return "Verify your email - Bank of Atlantic", html


def password_reset_email(link: str, ttl_minutes: int = 60) -> Tuple[str, str]:
    html = _LAYOUT.format(
        heading="Reset your password",
        intro="We received a request to reset the password for your account.",
        link=escape(link, quote=True),
        action="Choose a new password",
        footer=(
            f"This link expires in {_describe_ttl(ttl_minutes)} and can be used once. "
            "If you did not request a reset, you can ignore this email."
        ),
    )
    return "Reset your password - Bank of Atlantic", html
