"""Theme definitions for the TUI.

To add a new theme, define it here and register it in the app.
"""

from textual.theme import Theme

# Warm dark palette: amber primary, teal secondary
RELAY_DUSK = Theme(
    name="relay-dusk",
    primary="#f0a35e",
    secondary="#5ec4b6",
    accent="#e6d28a",
    foreground="#e8e2d6",
    background="#15130f",
    success="#9ccf7a",
    warning="#f0c05e",
    error="#e8707a",
    surface="#201d18",
    panel="#1a1814",
    dark=True,
    variables={
        "border": "#4a4438",
        "border-blurred": "#35302a",
        "text-muted": "#8a8274",
        "scrollbar": "#35302a",
        "scrollbar-hover": "#4a4438",
        "scrollbar-active": "#f0a35e",
        "footer-key-foreground": "#e6d28a",
        "input-selection-background": "#f0a35e 30%",
    },
)
