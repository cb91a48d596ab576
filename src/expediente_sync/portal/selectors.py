from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SelectorKind(str, Enum):
    PLACEHOLDER = "placeholder"
    CONTROL_NAME = "control_name"
    CSS = "css"
    TEXT = "text"


@dataclass(frozen=True)
class SelectorCandidate:
    """
    One way of locating a UI control. Lists of candidates are ordered most-specific first.
    """

    kind: SelectorKind
    value: str
    tag: str = "input"

    def to_selector(self) -> str:
        """
        Render as a Playwright selector string.
        """
        if self.kind is SelectorKind.PLACEHOLDER:
            return f'{self.tag}[placeholder="{self.value}"]'
        if self.kind is SelectorKind.CONTROL_NAME:
            return f'{self.tag}[formcontrolname="{self.value}"]'
        if self.kind is SelectorKind.TEXT:
            return f'{self.tag}:has-text("{self.value}")'
        return self.value


def placeholder(value: str, tag: str = "input") -> SelectorCandidate:
    return SelectorCandidate(SelectorKind.PLACEHOLDER, value, tag)


def control_name(value: str, tag: str = "input") -> SelectorCandidate:
    return SelectorCandidate(SelectorKind.CONTROL_NAME, value, tag)


def css(value: str) -> SelectorCandidate:
    return SelectorCandidate(SelectorKind.CSS, value, tag="")


def text(value: str, tag: str = "button") -> SelectorCandidate:
    return SelectorCandidate(SelectorKind.TEXT, value, tag)


@dataclass(frozen=True)
class PortalSelectors:
    """
    The provider portal is an Angular Material app; selectors may change between releases.
    Keep all UI selectors/text hooks here for easy maintenance.
    """

    # Login
    username_input: str = 'input[formcontrolname="username"]'
    password_input: str = 'input[formcontrolname="password"]'
    login_submit: str = 'button[type="submit"]'

    # Search form on /admin/services/pendientes
    search_input: tuple[SelectorCandidate, ...] = (
        placeholder("No. Expediente:*"),
        control_name("expediente"),
        css("input.mat-mdc-input-element"),
        css('input[type="text"]'),
    )
    search_button: tuple[SelectorCandidate, ...] = (text("Buscar"),)

    # Results
    results_ready: str = "table tbody tr, .no-results"
    result_row: str = "table tbody tr"
    # Column order of the results table (0 is the action column).
    cost_column: int = 2
    status_column: int = 3
    notes_column: int = 4
    registration_date_column: int = 5
    service_column: int = 6
    subservice_column: int = 7

    # Acceptance
    accept_button_marker: str = ".mat-mdc-button-touch-target"
    accept_button_column: int = 0
    overlay_container: str = ".cdk-overlay-container"
    confirm_text: str = "aceptar"
