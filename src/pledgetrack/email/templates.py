"""
Email templates for PledgeTrack.

All templates use inline CSS for maximum email client compatibility.
Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

from decimal import Decimal
from html import escape

# Color constants
BG_PAGE = "#F4F6F8"
BG_CARD = "#FFFFFF"
BG_SURFACE = "#F0FAF4"
GREEN = "#1F9D55"
TEXT_PRIMARY = "#1A202C"
TEXT_SECONDARY = "#4A5568"
BORDER = "#E2E8F0"


def _base_layout(content: str, app_name: str = "PledgeTrack") -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{app_name}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BG_PAGE}; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: {BG_PAGE};">
        <tr>
            <td align="center" style="padding: 40px 20px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%;">
                    <tr>
                        <td align="center" style="padding-bottom: 24px;">
                            <span style="font-size: 22px; font-weight: 700; color: {GREEN};">{app_name}</span>
                        </td>
                    </tr>
                    <tr>
                        <td style="background-color: {BG_CARD}; border: 1px solid {BORDER}; border-radius: 12px; padding: 40px 32px;">
                            {content}
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding-top: 24px;">
                            <p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
                                You are receiving this because you pledged on {app_name}.
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""


def _button(url: str, label: str) -> str:
    """Render a CTA button."""
    return f"""\
<table role="presentation" cellspacing="0" cellpadding="0" border="0" style="margin: 28px auto;">
    <tr>
        <td align="center" style="background-color: {GREEN}; border-radius: 8px;">
            <a href="{escape(url, quote=True)}" target="_blank" style="display: inline-block; padding: 14px 32px; color: #FFFFFF; font-size: 16px; font-weight: 600; text-decoration: none; border-radius: 8px;">
                {escape(label)}
            </a>
        </td>
    </tr>
</table>"""


def campaign_ended(
    donor_name: str,
    participant_name: str,
    challenge_name: str,
    final_progress: int,
    goal_amount: int,
    unit: str,
    amount_owed: Decimal,
    donation_url: str | None = None,
) -> tuple[str, str, str]:
    """
    Sent to each donor when a participant ends their challenge.

    ``amount_owed`` is already computed by the raised-amount calculator.

    Returns:
        (subject, html_body, text_body)
    """
    subject = f"{participant_name} finished their challenge"
    owed = f"${amount_owed:,.2f}"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 24px; font-weight: 700; margin: 0 0 16px 0;">The challenge is complete!</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 8px 0;">Hi {escape(donor_name)},</p>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 24px 0;">
    {escape(participant_name)} has ended <strong style="color: {TEXT_PRIMARY};">{escape(challenge_name)}</strong>
    with <strong style="color: {TEXT_PRIMARY};">{final_progress} of {goal_amount} {escape(unit)}</strong> completed.
</p>
<div style="background-color: {BG_SURFACE}; border: 1px solid {BORDER}; border-radius: 8px; padding: 16px; margin: 24px 0;">
    <p style="color: {TEXT_SECONDARY}; font-size: 14px; margin: 0 0 8px 0;">Your pledge total</p>
    <p style="color: {GREEN}; font-size: 28px; font-weight: 700; margin: 0;">{owed}</p>
</div>
{_button(donation_url, "Complete Your Donation") if donation_url else ""}
<p style="color: {TEXT_SECONDARY}; font-size: 13px; line-height: 1.5; margin: 24px 0 0 0;">
    Thank you for supporting this challenge.
</p>"""
    html_body = _base_layout(content)
    text_body = (
        f"Hi {donor_name},\n\n"
        f"{participant_name} has ended {challenge_name} with "
        f"{final_progress} of {goal_amount} {unit} completed.\n\n"
        f"Your pledge total: {owed}\n\n"
        + (f"Complete your donation here:\n\n{donation_url}\n\n" if donation_url else "")
        + "Thank you for supporting this challenge.\n\n"
        "-- The PledgeTrack Team"
    )
    return subject, html_body, text_body
