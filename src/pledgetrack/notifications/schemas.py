"""Pydantic schemas for preferences and reminder endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class PreferencesResponse(BaseModel):
    email_challenge_reminders: bool = False
    email_donor_updates: bool = False


class UpdatePreferencesRequest(BaseModel):
    email_challenge_reminders: bool | None = None
    email_donor_updates: bool | None = None


class ReminderResponse(BaseModel):
    show_reminder: bool
    type: str | None = None
    message: str | None = None
    action_text: str | None = None
    action_url: str | None = None
    participant_id: int | None = None
    challenge_name: str | None = None


class SuccessResponse(BaseModel):
    success: bool = True
