"""
Outgoing email over SMTP, configured through the MAIL_* app settings.
"""

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from flask import current_app


def mail_configured():
    return bool(current_app.config.get('MAIL_SERVER'))


def send_email(recipient, subject, body):
    """Send a plain-text email. Returns False (and logs) when SMTP is not configured."""
    config = current_app.config
    if not mail_configured():
        current_app.logger.info('[Mail] SMTP not configured, skipping "%s" to %s', subject, recipient)
        return False

    msg = MIMEMultipart()
    msg['From'] = config['MAIL_SENDER']
    msg['To'] = recipient
    msg['Subject'] = f"[{config['APP_NAME']}] {subject}"
    msg.attach(MIMEText(body, 'plain'))

    server = smtplib.SMTP(config['MAIL_SERVER'], int(config['MAIL_PORT']))
    try:
        if config.get('MAIL_USE_TLS', True):
            server.starttls()
        if config.get('MAIL_USERNAME') and config.get('MAIL_PASSWORD'):
            server.login(config['MAIL_USERNAME'], config['MAIL_PASSWORD'])
        server.sendmail(config['MAIL_SENDER'], recipient, msg.as_string())
    finally:
        server.quit()

    current_app.logger.info('[Mail] Sent "%s" to %s', subject, recipient)
    return True


def send_otp_email(recipient, code, minutes):
    body = f"""
Hello,

Your verification code is: {code}

This code expires in {minutes} minutes. If you did not try to sign in, you can ignore this email.
"""
    return send_email(recipient, 'Your verification code', body)


def send_password_reset_email(recipient, reset_link):
    body = f"""
Hello,

A password reset was requested for your account. Use the link below within one hour:

{reset_link}

If you did not request this, you can ignore this email.
"""
    return send_email(recipient, 'Password reset', body)
