from fastapi_mail import FastMail, MessageSchema, ConnectionConfig
from hospitality_hub.config import settings

conf = ConnectionConfig(
    MAIL_USERNAME=settings.MAIL_USERNAME,
    MAIL_PASSWORD=settings.MAIL_PASSWORD,
    MAIL_FROM=settings.MAIL_FROM,
    MAIL_PORT=settings.MAIL_PORT,
    MAIL_SERVER=settings.MAIL_SERVER,
    MAIL_STARTTLS=settings.MAIL_STARTTLS,
    MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
    USE_CREDENTIALS=True,
    VALIDATE_CERTS=True,
    SUPPRESS_SEND=int(settings.MAIL_SUPPRESS_SEND),
)

def build_invite_url(token: str) -> str:
    return f"{settings.APP_BASE_URL.rstrip('/')}/invite/{token}"

async def send_invitation_email(email_to: str, organization_name: str, role: str, invite_url: str, custom_message: str = None):
    """Sends a team invitation with the acceptance link."""
    note = f"<p><em>{custom_message}</em></p>" if custom_message else ""
    html_content = f"""
    <html>
        <body>
            <h2>You've been invited to join {organization_name}</h2>
            <p>You have been invited to join {organization_name} on Hospitality Hub as a <strong>{role}</strong>.</p>
            {note}
            <p><a href="{invite_url}">Accept the invitation</a></p>
            <p>This invitation will expire in 7 days.</p>
        </body>
    </html>
    """
    message = MessageSchema(
        subject=f"Invitation to join {organization_name}",
        recipients=[email_to],
        body=html_content,
        subtype="html"
    )

    fm = FastMail(conf)
    await fm.send_message(message)
