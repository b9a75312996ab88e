"""
Email service for sending emails via Mailgun API.
"""
import os
import requests
import logging

from markupsafe import escape

logger = logging.getLogger(__name__)

EMAIL_STYLE = """
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #ddd; border-radius: 10px; }
        .brand { text-align: center; color: #d32f2f; }
        .footer { margin-top: 30px; font-size: 12px; color: #666; }
"""


def _get_mailgun_config():
    """Get Mailgun configuration from environment variables."""
    api_key = os.getenv('MAILGUN_API_KEY', '').strip()
    custom_domain = os.getenv('CUSTOM_DOMAIN', '').strip()
    sender_email = os.getenv('SENDER_EMAIL', '').strip()

    if not api_key:
        raise ValueError("MAILGUN_API_KEY environment variable is not set")
    if not custom_domain:
        raise ValueError("CUSTOM_DOMAIN environment variable is not set")
    if not sender_email:
        raise ValueError("SENDER_EMAIL environment variable is not set")

    return {
        'api_key': api_key,
        'domain': custom_domain,
        'sender_email': sender_email
    }


def send_email(to_email, subject, text_content, html_content=None):
    """
    Send an email using Mailgun API.

    Args:
        to_email: Recipient email address
        subject: Email subject
        text_content: Plain text email content
        html_content: Optional HTML email content

    Returns:
        requests.Response object if successful

    Raises:
        ValueError: If required environment variables are missing
        requests.exceptions.RequestException: If email sending fails
    """
    config = _get_mailgun_config()

    data = {
        "from": f"DiaBeater <{config['sender_email']}>",
        "to": to_email,
        "subject": subject,
        "text": text_content
    }

    if html_content:
        data["html"] = html_content

    try:
        response = requests.post(
            f"https://api.mailgun.net/v3/{config['domain']}/messages",
            auth=("api", config['api_key']),
            data=data,
            timeout=10
        )
        response.raise_for_status()
        logger.info(f"Email sent successfully to {to_email}")
        return response
    except requests.exceptions.RequestException as e:
        logger.error(f"Error sending email to {to_email}: {e}")
        raise


def _wrap_html(title, body_html):
    return f"""<!DOCTYPE html>
<html>
<head>
    <style>{EMAIL_STYLE}</style>
</head>
<body>
    <div class="container">
        <h1 class="brand">DiaBeater</h1>
        <h2>{title}</h2>
        {body_html}
        <div class="footer">
            <p>Best regards,<br><strong>The DiaBeater Team</strong></p>
        </div>
    </div>
</body>
</html>
"""


def send_nutritionist_approval_email(email, name):
    """
    Tell an applicant their nutritionist application was approved.

    Returns:
        requests.Response object if successful, None if error (logged)
    """
    subject = "Nutritionist Application Approved - DiaBeater"

    text_content = f"""Dear {name},

We are pleased to inform you that your nutritionist application has been approved!

You can now log in to your DiaBeater nutritionist account using your registered email and password.

Welcome to the DiaBeater community!

Best regards,
The DiaBeater Team
"""

    html_content = _wrap_html(
        "Congratulations! Your Application Has Been Approved",
        f"""<p>Dear {escape(name)},</p>
        <p>We are pleased to inform you that your nutritionist application has been <strong>approved</strong>!</p>
        <p>You can now log in to your DiaBeater nutritionist account using your registered email and password.</p>
        <p>Welcome to the DiaBeater community!</p>"""
    )

    try:
        return send_email(
            to_email=email,
            subject=subject,
            text_content=text_content,
            html_content=html_content
        )
    except Exception as e:
        # Approval is already saved; a missing email is only logged
        logger.error(f"Failed to send approval email to {email}: {e}")
        return None


def send_nutritionist_rejection_email(email, name, reason):
    """
    Tell an applicant their nutritionist application was rejected, with the reason.

    Returns:
        requests.Response object if successful, None if error (logged)
    """
    subject = "Nutritionist Application Update - DiaBeater"

    text_content = f"""Dear {name},

Thank you for your interest in joining DiaBeater as a nutritionist.

After careful review, we are unable to approve your application at this time.

Reason: {reason}

You are welcome to apply again once the points above have been addressed.

Best regards,
The DiaBeater Team
"""

    html_content = _wrap_html(
        "Application Status Update",
        f"""<p>Dear {escape(name)},</p>
        <p>Thank you for your interest in joining DiaBeater as a nutritionist.</p>
        <p>After careful review, we are unable to approve your application at this time.</p>
        <p><strong>Reason:</strong> {escape(reason)}</p>
        <p>You are welcome to apply again once the points above have been addressed.</p>"""
    )

    try:
        return send_email(
            to_email=email,
            subject=subject,
            text_content=text_content,
            html_content=html_content
        )
    except Exception as e:
        logger.error(f"Failed to send rejection email to {email}: {e}")
        return None
