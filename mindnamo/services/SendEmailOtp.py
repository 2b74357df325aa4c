"""Verification-code email."""

import logging

from mindnamo.core.config import settings
from mindnamo.services.MailClient import Notifier

logger = logging.getLogger(__name__)


def render_otp_email(code: str, ttl_minutes: int) -> str:
    return f"""
    <div style="font-family: sans-serif; padding: 20px; text-align: center; border: 1px solid #eee; border-radius: 10px;">
      <h2 style="color: #333;">Verify your Account</h2>
      <p style="color: #666;">Your secure verification code is:</p>
      <div style="background: #f4f4f5; padding: 15px; margin: 20px 0; border-radius: 8px; display: inline-block;">
        <span style="font-size: 24px; font-weight: bold; letter-spacing: 8px; color: #000;">{code}</span>
      </div>
      <p style="color: #999; font-size: 12px;">Valid for {ttl_minutes} minutes.</p>
      <p style="color: #999; font-size: 12px;">
        If you didn't request this code, someone may be trying to access your account.
      </p>
    </div>
    """


async def send_email_otp(notifier: Notifier, email: str, code: str) -> dict:
    """
    Send a verification code by email.

    Args:
        notifier: Delivery collaborator
        email: Recipient email address
        code: One-time code

    Returns:
        The notifier result, ``{"success": bool, ...}``
    """
    html_content = render_otp_email(code, settings.OTP_TTL_MINUTES)
    try:
        result = await notifier.send(email, "Your Verification Code", html_content)
    except Exception as e:
        logger.exception(f"❌ [EMAIL ERROR] Notifier raised while sending OTP to {email}: {e}")
        return {"success": False, "error": str(e)}

    if result.get("success"):
        logger.info(f"✅ [EMAIL] Sent verification code to {email}")
    else:
        logger.warning(f"❌ [EMAIL ERROR] Failed to send verification code to {email}: {result.get('error')}")
    return result
