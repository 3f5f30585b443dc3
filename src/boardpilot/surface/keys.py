"""Named-key table mapping key names onto W3C WebDriver key codepoints."""

from __future__ import annotations

KEYS: dict[str, str] = {
    "Null": "\ue000",
    "Cancel": "\ue001",
    "Help": "\ue002",
    "Backspace": "\ue003",
    "Tab": "\ue004",
    "Clear": "\ue005",
    "Return": "\ue006",
    "Enter": "\ue007",
    "Shift": "\ue008",
    "Control": "\ue009",
    "Alt": "\ue00a",
    "Pause": "\ue00b",
    "Escape": "\ue00c",
    "Space": "\ue00d",
    "PageUp": "\ue00e",
    "PageDown": "\ue00f",
    "End": "\ue010",
    "Home": "\ue011",
    "ArrowLeft": "\ue012",
    "ArrowUp": "\ue013",
    "ArrowRight": "\ue014",
    "ArrowDown": "\ue015",
    "Insert": "\ue016",
    "Delete": "\ue017",
    "Semicolon": "\ue018",
    "Equals": "\ue019",
    "Multiply": "\ue024",
    "Add": "\ue025",
    "Separator": "\ue026",
    "Subtract": "\ue027",
    "Decimal": "\ue028",
    "Divide": "\ue029",
    "Meta": "\ue03d",
    "ZenkakuHankaku": "\ue040",
}
KEYS.update({f"Numpad{digit}": chr(0xE01A + digit) for digit in range(10)})
KEYS.update({f"F{number}": chr(0xE030 + number) for number in range(1, 13)})

# xdotool-style names that computer-use models tend to emit
_ALIASES: dict[str, str] = {
    "ctrl": "Control",
    "control": "Control",
    "shift": "Shift",
    "alt": "Alt",
    "option": "Alt",
    "super": "Meta",
    "cmd": "Meta",
    "command": "Meta",
    "meta": "Meta",
    "win": "Meta",
    "enter": "Enter",
    "return": "Return",
    "esc": "Escape",
    "escape": "Escape",
    "tab": "Tab",
    "space": "Space",
    "backspace": "Backspace",
    "delete": "Delete",
    "del": "Delete",
    "insert": "Insert",
    "home": "Home",
    "end": "End",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "prior": "PageUp",
    "next": "PageDown",
}

CHORD_SEPARATOR = "+"


def map_key(token: str) -> str:
    """Map a key name to its codepoint, or return the token unchanged."""
    if token in KEYS:
        return KEYS[token]
    normalized = token.replace("_", "").replace("-", "").lower()
    alias = _ALIASES.get(normalized)
    if alias is not None:
        return KEYS[alias]
    for name, value in KEYS.items():
        if name.lower() == normalized:
            return value
    return token


def split_chord(chord: str) -> list[str]:
    return [token.strip() for token in chord.split(CHORD_SEPARATOR) if token.strip()]
