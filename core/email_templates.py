# core/email_templates.py

"""
HTML bodies for invite and reminder emails. Every interpolated value
goes through escape_html.
"""

import html
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlencode


BRAND_COLOR = "#FF692D"


def escape_html(text: Optional[str]) -> str:
    """HTML-escape and flatten newlines (safe inside attributes too)."""
    if not text:
        return ""
    return html.escape(text, quote=True).replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def single_line(text: str) -> str:
    """For subjects: CR/LF would allow header injection."""
    return text.replace("\r", " ").replace("\n", " ")


def _button(url: str, label: str) -> str:
    return (
        f'<a href="{escape_html(url)}" style="display: inline-block; padding: 10px 20px; '
        f'background: {BRAND_COLOR}; color: white; text-decoration: none; border-radius: 6px; '
        f'font-weight: 600;">{label}</a>'
    )


# ============================================================
# Invites
# ============================================================
def client_invite_email(manager_name: Optional[str], property_name: Optional[str], action_link: str):
    """Returns (subject, plain body, html body) for a managed homeowner invite."""
    manager_name = manager_name or "Your property manager"
    property_name = property_name or "your new home"

    subject = single_line(f"{manager_name} has set up your HOMEBOT account")
    body = (
        f"{manager_name} has prepared a home management account for {property_name}.\n\n"
        "Your account has been pre-loaded with your home's assets and maintenance "
        "schedule. Use the link below to set your password and take over:\n\n"
        f"{action_link}\n\n"
        "If you didn't expect this invitation, you can ignore this email."
    )
    html_body = f"""
<div style="font-family: system-ui, sans-serif; max-width: 480px; margin: 0 auto;">
  <h2 style="color: #22201d;">Welcome to HOMEBOT</h2>
  <p><strong>{escape_html(manager_name)}</strong> has prepared a home management account for <strong>{escape_html(property_name)}</strong>.</p>
  <p>Your account has been pre-loaded with your home's assets and maintenance schedule. Click below to set your password and take over:</p>
  <p>{_button(action_link, "Set Up Your Account")}</p>
  <p style="color: #84827f; font-size: 13px;">If you didn't expect this invitation, you can ignore this email.</p>
</div>
"""
    return subject, body, html_body


def manager_invite_email(org_name: str, action_link: str):
    """Returns (subject, plain body, html body) for a manager invite."""
    subject = single_line(f"You've been invited to HOMEBOT as a {org_name} manager")
    body = (
        f"You've been added as a property manager for {org_name}.\n\n"
        "Use the link below to set your password and get started:\n\n"
        f"{action_link}\n\n"
        "If you didn't expect this invitation, you can ignore this email."
    )
    html_body = f"""
<div style="font-family: system-ui, sans-serif; max-width: 480px; margin: 0 auto;">
  <h2 style="color: #22201d;">Welcome to HOMEBOT</h2>
  <p>You've been added as a property manager for <strong>{escape_html(org_name)}</strong>.</p>
  <p>Click the link below to set your password and get started:</p>
  <p>{_button(action_link, "Set Up Your Account")}</p>
  <p style="color: #84827f; font-size: 13px;">If you didn't expect this invitation, you can ignore this email.</p>
</div>
"""
    return subject, body, html_body


# ============================================================
# Inventory reminders
# ============================================================
@dataclass
class AlertItem:
    name: str
    next_reminder_date: str
    days_until: int
    purchase_url: Optional[str] = None


def due_label(days: int) -> str:
    if days < 0:
        overdue = abs(days)
        return f"{overdue} day{'s' if overdue != 1 else ''} overdue"
    if days == 0:
        return "Due today"
    return f"Due in {days} day{'s' if days != 1 else ''}"


def _badge_colors(days: int):
    if days < 0:
        return "#e03131", "#ffffff"
    if days == 0:
        return BRAND_COLOR, "#ffffff"
    return "#e8f4f8", "#00a2c7"


def buy_now_url(item_name: str, purchase_url: Optional[str] = None) -> str:
    if purchase_url:
        return purchase_url
    return "https://www.amazon.com/s?" + urlencode({"k": item_name})


def items_phrase(count: int) -> str:
    """'1 inventory item needs' / '3 inventory items need'."""
    if count == 1:
        return "1 inventory item needs"
    return f"{count} inventory items need"


def inventory_alert_email(user_name: str, items: List[AlertItem], site_url: Optional[str] = None) -> str:
    logo = ""
    if site_url:
        logo = (
            f'<img src="{escape_html(site_url)}/icon-512.png" alt="HOMEBOT" width="120" height="120" '
            'style="display:block;margin:0 auto 12px;width:120px;height:120px;border-radius:14px;" />'
        )

    rows = []
    for item in items:
        bg, color = _badge_colors(item.days_until)
        url = buy_now_url(item.name, item.purchase_url)
        rows.append(f"""
        <tr>
          <td style="padding:12px 16px;border-bottom:1px solid #efece9;font-size:14px;color:#22201d;">{escape_html(item.name)}</td>
          <td style="padding:12px 16px;border-bottom:1px solid #efece9;text-align:center;">
            <span style="display:inline-block;padding:3px 10px;border-radius:9999px;font-size:12px;font-weight:500;background:{bg};color:{color};">{due_label(item.days_until)}</span>
          </td>
          <td style="padding:12px 16px;border-bottom:1px solid #efece9;text-align:center;">
            <a href="{escape_html(url)}" style="display:inline-block;padding:6px 16px;border-radius:6px;background:{BRAND_COLOR};color:#ffffff;font-size:12px;font-weight:600;text-decoration:none;">Buy Now</a>
          </td>
        </tr>""")

    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width,initial-scale=1"></head>
<body style="margin:0;padding:0;background:#f5f0eb;font-family:Inter,system-ui,-apple-system,sans-serif;">
  <table width="100%" cellpadding="0" cellspacing="0" style="background:#f5f0eb;padding:32px 16px;">
    <tr><td align="center">
      <table width="600" cellpadding="0" cellspacing="0" style="background:#ffffff;border-radius:14px;overflow:hidden;">
        <tr>
          <td align="center" style="padding:28px 24px 20px;border-bottom:1px solid #efece9;">
            {logo}
            <span style="display:block;font-size:20px;font-weight:700;color:{BRAND_COLOR};">Home Inventory Alert</span>
          </td>
        </tr>
        <tr>
          <td style="padding:24px;">
            <p style="margin:0 0 8px;font-size:15px;color:#22201d;">Hi {escape_html(user_name)},</p>
            <p style="margin:0 0 20px;font-size:14px;color:#84827f;">You have {items_phrase(len(items))} attention:</p>
            <table width="100%" cellpadding="0" cellspacing="0" style="border:1px solid #efece9;border-radius:10px;overflow:hidden;">
              <tr style="background:#f9f7f5;">
                <th style="padding:10px 16px;text-align:left;font-size:12px;color:#84827f;">Item</th>
                <th style="padding:10px 16px;text-align:center;font-size:12px;color:#84827f;">Status</th>
                <th style="padding:10px 16px;text-align:center;font-size:12px;color:#84827f;">Action</th>
              </tr>
              {''.join(rows)}
            </table>
          </td>
        </tr>
        <tr>
          <td style="padding:16px 24px 24px;border-top:1px solid #efece9;">
            <p style="margin:0;font-size:12px;color:#84827f;">You can manage notification preferences in your HOMEBOT Settings page.</p>
          </td>
        </tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def inventory_alert_text(items: List[AlertItem]) -> str:
    """Plain text list, used for SMS and as the email text part."""
    lines = [f"- {item.name} ({due_label(item.days_until).lower()})" for item in items]
    return "HOMEBOT Inventory Alert:\n" + "\n".join(lines)
