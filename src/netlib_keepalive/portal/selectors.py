from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SiteSelectors:
    """
    netlib.re is a third-party site; selectors and marker texts may change over time.
    Keep all UI selectors/text hooks here for easy maintenance.

    If the site changes wording, classification silently falls back to "unknown error".
    """

    # Login
    login_entry: str = "text=Login"
    username_input: str = 'input[name="username"], [name="username"], [role="textbox"][name="Username"]'
    password_input: str = 'input[name="password"], [name="password"], [role="textbox"][name="Password"]'
    submit: str = 'button:has-text("Validate"), [role="button"][name="Validate"]'

    # Outcome markers (page text after submit)
    success_text: str = "You are the exclusive owner of the following domains."
    # Checked in order; the first present one is reported.
    failure_texts: tuple[str, ...] = (
        "Invalid credentials.",
        "Not connected to server.",
        "Error with the login: login size should be between 2 and 50 (currently: 1)",
    )
