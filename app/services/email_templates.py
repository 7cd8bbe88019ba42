"""
HTML bodies for Tikiti transactional email.
Every dynamic value passes through html.escape before it is interpolated.
"""
from datetime import datetime
from html import escape
from typing import Iterable, Optional
from urllib.parse import quote

INVITATION_EXPIRES_DAYS = 7
SPEAKER_INVITATION_EXPIRES_DAYS = 14

_P = 'style="margin: 0 0 24px; font-size: 16px; color: #333; line-height: 1.6;"'
_MUTED = 'style="margin: 0; font-size: 14px; color: #86868b;"'
_BUTTON = (
    'style="display: inline-block; background-color: #333; color: white; padding: 16px 32px; '
    'border-radius: 50px; text-decoration: none; font-weight: 600; font-size: 16px;"'
)


def _e(value) -> str:
    return escape(str(value if value is not None else ""))


def _badge(text: str, background: str, color: str) -> str:
    return f"""
          <div style="text-align: center; margin-bottom: 24px;">
            <span style="display: inline-block; background-color: {background}; color: {color}; padding: 8px 16px; border-radius: 50px; font-size: 14px; font-weight: 600;">{text}</span>
          </div>"""


def _layout(title: str, body: str, footer_note: str) -> str:
    year = datetime.utcnow().year
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="margin: 0; padding: 0; font-family: 'Plus Jakarta Sans', -apple-system, BlinkMacSystemFont, sans-serif; background-color: #fefff7;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width: 600px; margin: 0 auto; padding: 40px 20px;">
    <tr>
      <td>
        <div style="text-align: center; margin-bottom: 32px;">
          <div style="display: inline-block; width: 48px; height: 48px; background-color: #333; border-radius: 12px; line-height: 48px; color: white; font-weight: bold; font-size: 18px;">TK</div>
          <h1 style="margin: 16px 0 0; font-size: 24px; font-weight: 800; color: #333;">Tikiti</h1>
        </div>
        <div style="background-color: white; border-radius: 24px; padding: 40px; border: 1px solid rgba(0,0,0,0.1);">
{body}
        </div>
        <div style="text-align: center; margin-top: 32px;">
          <p {_MUTED}>&copy; {year} Tikiti Events. All rights reserved.</p>
          <p style="margin: 8px 0 0; font-size: 12px; color: #86868b;">{footer_note}</p>
        </div>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def _role_label(role: str) -> str:
    return _e((role or "").replace("_", " ").title())


def welcome_organization(name: str, org_name: str, login_url: str) -> tuple:
    subject = "Welcome to Tikiti - Your Organization is Ready!"
    body = f"""
          <h2 style="margin: 0 0 16px; font-size: 28px; font-weight: 700; color: #333;">Welcome to Tikiti!</h2>
          <p {_P}>Hi {_e(name)},</p>
          <p {_P}>Congratulations! Your organization <strong>{_e(org_name)}</strong> has been successfully created on Tikiti. You're now ready to start creating and managing amazing events.</p>
          <p {_P}>Here's what you can do next:</p>
          <ul style="margin: 0 0 32px; padding-left: 24px; font-size: 16px; color: #333; line-height: 1.8;">
            <li>Create your first event</li>
            <li>Invite team members to help manage events</li>
            <li>Customize your organization branding</li>
            <li>Set up ticket types and pricing</li>
          </ul>
          <a href="{_e(login_url)}" {_BUTTON}>Go to Dashboard</a>"""
    html = _layout(
        "Welcome to Tikiti",
        body,
        "You're receiving this email because you created an organization on Tikiti.",
    )
    return subject, html


def team_invitation(
    org_name: str,
    inviter_name: str,
    role: str,
    invite_url: str,
    invitee_name: Optional[str] = None,
) -> tuple:
    subject = f"You've been invited to join {org_name} on Tikiti"
    greeting = f"Hi {_e(invitee_name)}," if invitee_name else "Hi,"
    body = f"""
          <h2 style="margin: 0 0 16px; font-size: 28px; font-weight: 700; color: #333;">You're Invited!</h2>
          <p {_P}>{greeting}</p>
          <p {_P}><strong>{_e(inviter_name)}</strong> has invited you to join <strong>{_e(org_name)}</strong> on Tikiti as a <strong>{_role_label(role)}</strong>.</p>
          <p {_P}>Tikiti is an event management platform that helps you create, manage, and track events with ease.</p>
          <div style="background-color: #f8f8f8; border-radius: 16px; padding: 24px; margin-bottom: 32px;">
            <p {_MUTED}><strong style="color: #333;">Organization:</strong> {_e(org_name)}</p>
            <p {_MUTED}><strong style="color: #333;">Your Role:</strong> {_role_label(role)}</p>
            <p {_MUTED}><strong style="color: #333;">Invited by:</strong> {_e(inviter_name)}</p>
          </div>
          <a href="{_e(invite_url)}" {_BUTTON}>Accept Invitation</a>
          <p style="margin: 24px 0 0; font-size: 14px; color: #86868b;">This invitation will expire in {INVITATION_EXPIRES_DAYS} days.</p>"""
    html = _layout(
        f"You're Invited to Join {_e(org_name)}",
        body,
        "If you didn't expect this invitation, you can safely ignore this email.",
    )
    return subject, html


def ticket_confirmation(
    attendee_name: str,
    event_name: str,
    event_date: str,
    event_time: str,
    event_location: str,
    ticket_type: str,
    quantity: int,
    ticket_id: str,
    qr_code_data: str,
    ticket_url: str,
) -> tuple:
    subject = f"Your Ticket for {event_name}"
    qr_src = f"https://api.qrserver.com/v1/create-qr-code/?size=180x180&data={quote(qr_code_data, safe='')}"
    plural = "s" if quantity > 1 else ""
    badge = _badge("&#10003; Booking Confirmed", "#dcfce7", "#16a34a")
    body = f"""{badge}
          <h2 style="margin: 0 0 8px; font-size: 28px; font-weight: 700; color: #333; text-align: center;">You're Going!</h2>
          <p style="margin: 0 0 32px; font-size: 16px; color: #86868b; text-align: center;">Hi {_e(attendee_name)}, your ticket is ready</p>
          <div style="background: linear-gradient(135deg, #333 0%, #1a1a1a 100%); border-radius: 20px; padding: 32px; color: white; margin-bottom: 32px;">
            <h3 style="margin: 0 0 24px; font-size: 24px; font-weight: 700;">{_e(event_name)}</h3>
            <p style="margin: 0; font-size: 12px; text-transform: uppercase; color: rgba(255,255,255,0.6);">Date &amp; Time</p>
            <p style="margin: 4px 0 16px; font-size: 16px; font-weight: 600;">{_e(event_date)} at {_e(event_time)}</p>
            <p style="margin: 0; font-size: 12px; text-transform: uppercase; color: rgba(255,255,255,0.6);">Location</p>
            <p style="margin: 4px 0 16px; font-size: 16px; font-weight: 600;">{_e(event_location)}</p>
            <p style="margin: 0; font-size: 12px; text-transform: uppercase; color: rgba(255,255,255,0.6);">Ticket</p>
            <p style="margin: 4px 0 0; font-size: 16px; font-weight: 600;">{_e(ticket_type)} &middot; {quantity} ticket{plural}</p>
          </div>
          <div style="text-align: center; padding: 32px; background-color: #f8f8f8; border-radius: 16px; margin-bottom: 32px;">
            <p style="margin: 0 0 16px; font-size: 14px; font-weight: 600; color: #333;">Your Entry QR Code</p>
            <img src="{_e(qr_src)}" alt="QR Code" width="180" height="180" style="display: block; margin: 0 auto;" />
            <p style="margin: 16px 0 0; font-size: 12px; color: #86868b;">Show this QR code at the venue entrance</p>
          </div>
          <div style="background-color: #fef3c7; border-radius: 12px; padding: 16px; text-align: center; margin-bottom: 32px;">
            <p style="margin: 0; font-size: 12px; color: #92400e; font-weight: 600; text-transform: uppercase;">Ticket ID</p>
            <p style="margin: 4px 0 0; font-size: 18px; color: #92400e; font-weight: 700; font-family: monospace;">{_e(ticket_id)}</p>
          </div>
          <a href="{_e(ticket_url)}" {_BUTTON}>Download Ticket PDF</a>
          <p style="margin: 24px 0 0; font-size: 14px; color: #86868b; text-align: center;">You can also access your ticket in the Tikiti app</p>"""
    html = _layout(
        f"Your Ticket for {_e(event_name)}",
        body,
        "Questions? Contact the event organizer through the Tikiti app.",
    )
    return subject, html


def speaker_invitation(
    event_name: str,
    organization_name: str,
    inviter_name: str,
    role: str,
    profile_url: str,
    speaker_name: Optional[str] = None,
    session_title: Optional[str] = None,
    personal_message: Optional[str] = None,
) -> tuple:
    subject = f"You're invited to speak at {event_name}"
    greeting = f"Hi {_e(speaker_name)}," if speaker_name else "Hi,"
    session = f'\n          <p {_P}><strong>Session:</strong> {_e(session_title)}</p>' if session_title else ""
    note = ""
    if personal_message:
        note = f"""
          <div style="background-color: #f8f8f8; border-left: 4px solid #333; border-radius: 8px; padding: 16px 20px; margin-bottom: 24px;">
            <p style="margin: 0; font-size: 14px; color: #666; font-style: italic;">"{_e(personal_message)}"</p>
            <p style="margin: 8px 0 0; font-size: 12px; color: #999;">- {_e(inviter_name)}</p>
          </div>"""
    badge = _badge("Speaker Invitation", "#e0f2fe", "#0369a1")
    body = f"""{badge}
          <h2 style="margin: 0 0 16px; font-size: 28px; font-weight: 700; color: #333; text-align: center;">You're Invited to Speak!</h2>
          <p {_P}>{greeting}</p>
          <p {_P}><strong>{_e(inviter_name)}</strong> from <strong>{_e(organization_name)}</strong> would like to invite you to be a <strong>{_role_label(role)}</strong> at <strong>{_e(event_name)}</strong>.</p>{session}{note}
          <p {_P}>To accept this invitation, please click the button below to complete your speaker profile. We'll need your bio, photo, and a few other details for the event program.</p>
          <a href="{_e(profile_url)}" {_BUTTON}>Complete Your Profile</a>
          <p style="margin: 24px 0 0; font-size: 14px; color: #86868b; text-align: center;">This invitation will expire in {SPEAKER_INVITATION_EXPIRES_DAYS} days.</p>"""
    html = _layout(
        f"You're Invited to Speak at {_e(event_name)}",
        body,
        "If you didn't expect this invitation, you can safely ignore this email.",
    )
    return subject, html


def event_update(
    attendee_name: str,
    event_name: str,
    organization_name: str,
    changes: Iterable[dict],
    event_date: str,
    event_time: str,
    event_location: str,
    event_url: str,
) -> tuple:
    subject = f"Important Update for {event_name}"
    rows = []
    for change in changes:
        field = _e(change.get("field"))
        new_value = _e(change.get("newValue"))
        old_value = change.get("oldValue") or ""
        old_html = (
            f'\n            <p style="margin: 0; font-size: 14px; color: #86868b; text-decoration: line-through;">{_e(old_value)}</p>'
            if old_value else ""
        )
        rows.append(f"""
            <p style="margin: 0 0 4px; font-size: 12px; text-transform: uppercase; color: #c2410c;">{field}</p>{old_html}
            <p style="margin: 4px 0 16px; font-size: 16px; font-weight: 600; color: #333;">{new_value}</p>""")
    org_line = f"<strong>{_e(organization_name)}</strong> has" if organization_name else "The organizer has"
    badge = _badge("Event Update", "#fef3c7", "#92400e")
    changes_html = "".join(rows)
    body = f"""{badge}
          <h2 style="margin: 0 0 16px; font-size: 28px; font-weight: 700; color: #333; text-align: center;">Important Event Update</h2>
          <p {_P}>Hi {_e(attendee_name)},</p>
          <p {_P}>{org_line} made some updates to <strong>{_e(event_name)}</strong>. Please review the changes below:</p>
          <div style="background-color: #fff7ed; border-radius: 16px; padding: 24px; margin-bottom: 24px;">
            <p style="margin: 0 0 16px; font-size: 14px; font-weight: 600; color: #c2410c;">What's Changed:</p>{changes_html}
          </div>
          <div style="background-color: #f8f8f8; border-radius: 16px; padding: 24px; margin-bottom: 32px;">
            <p style="margin: 0 0 16px; font-size: 14px; font-weight: 600; color: #333;">Updated Event Details:</p>
            <p style="margin: 0; font-size: 12px; color: #86868b;">Date &amp; Time</p>
            <p style="margin: 4px 0 16px; font-size: 16px; font-weight: 600; color: #333;">{_e(event_date)} at {_e(event_time)}</p>
            <p style="margin: 0; font-size: 12px; color: #86868b;">Location</p>
            <p style="margin: 4px 0 0; font-size: 16px; font-weight: 600; color: #333;">{_e(event_location)}</p>
          </div>
          <a href="{_e(event_url)}" {_BUTTON}>View Event Details</a>
          <p style="margin: 24px 0 0; font-size: 14px; color: #86868b; text-align: center;">Your ticket is still valid. Please make note of the updated details.</p>"""
    html = _layout(
        f"Event Update: {_e(event_name)}",
        body,
        "You're receiving this email because you have a ticket for this event.",
    )
    return subject, html


def event_cancellation(
    attendee_name: str,
    event_name: str,
    organization_name: str,
    event_date: str,
    event_location: str,
    refund_info: Optional[str] = None,
    contact_email: Optional[str] = None,
) -> tuple:
    subject = f"Event Cancelled: {event_name}"
    refund = ""
    if refund_info:
        refund = f"""
          <div style="background-color: #f0fdf4; border-radius: 16px; padding: 24px; margin-bottom: 24px;">
            <p style="margin: 0 0 8px; font-size: 14px; font-weight: 600; color: #16a34a;">Refund Information:</p>
            <p style="margin: 0; font-size: 14px; color: #333; line-height: 1.6;">{_e(refund_info)}</p>
          </div>"""
    contact = ""
    if contact_email:
        contact = (
            f'\n          <p style="margin: 0 0 24px; font-size: 14px; color: #86868b; line-height: 1.6;">'
            f'If you have any questions, please contact the organizer at '
            f'<a href="mailto:{_e(contact_email)}" style="color: #333; text-decoration: underline;">{_e(contact_email)}</a></p>'
        )
    badge = _badge("Event Cancelled", "#fee2e2", "#dc2626")
    body = f"""{badge}
          <h2 style="margin: 0 0 16px; font-size: 28px; font-weight: 700; color: #333; text-align: center;">Event Cancellation Notice</h2>
          <p {_P}>Hi {_e(attendee_name)},</p>
          <p {_P}>We regret to inform you that <strong>{_e(event_name)}</strong> by <strong>{_e(organization_name)}</strong> has been cancelled.</p>
          <div style="background-color: #fef2f2; border-radius: 16px; padding: 24px; margin-bottom: 24px;">
            <p style="margin: 0 0 16px; font-size: 14px; font-weight: 600; color: #dc2626;">Cancelled Event:</p>
            <p style="margin: 0 0 8px; font-size: 16px; font-weight: 600; color: #333;">{_e(event_name)}</p>
            <p style="margin: 0 0 4px; font-size: 14px; color: #86868b;">Originally scheduled: {_e(event_date)}</p>
            <p {_MUTED}>Location: {_e(event_location)}</p>
          </div>{refund}
          <p {_P}>We sincerely apologize for any inconvenience this may cause. Thank you for your understanding.</p>{contact}"""
    html = _layout(
        f"Event Cancelled: {_e(event_name)}",
        body,
        "You're receiving this email because you had a ticket for this event.",
    )
    return subject, html


def bulk_message(recipient_name: str, subject: str, message: str, event_name: str) -> str:
    html_message = _e(message).replace("\n", "<br>")
    body = f"""
          <p style="margin: 0 0 8px; font-size: 14px; color: #86868b;">Regarding: <strong style="color: #333;">{_e(event_name)}</strong></p>
          <hr style="border: none; border-top: 1px solid #e5e5e5; margin: 24px 0;">
          <p {_P}>Hi {_e(recipient_name)},</p>
          <div style="font-size: 16px; color: #333; line-height: 1.6;">{html_message}</div>"""
    return _layout(
        _e(subject),
        body,
        f"This message was sent by the organizer of {_e(event_name)} via Tikiti.",
    )
