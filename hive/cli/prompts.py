"""Console prompt helpers."""
from typing import Any, Callable, List, Optional, Sequence, Tuple

Validator = Callable[[str], Optional[str]]


def ask(message: str, validate: Optional[Validator] = None) -> str:
    """Prompt until the validator accepts the answer.

    Args:
        message: Prompt text.
        validate: Returns an error message for a bad answer, or None to accept.

    Returns:
        The accepted answer, stripped.
    """
    while True:
        answer = input(f"{message} ").strip()
        error = validate(answer) if validate else None
        if error is None:
            return answer
        print(error)


def not_blank(answer: str) -> Optional[str]:
    return None if answer else "A value is required."


def choose(title: str, options: Sequence[Tuple[str, Any]]) -> Any:
    """Show a numbered menu and return the value of the chosen option."""
    print(f"\n{title}")
    for number, (label, _) in enumerate(options, 1):
        print(f"  {number}. {label}")

    while True:
        answer = input(f"Enter your choice (1-{len(options)}): ").strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1][1]
        print("Invalid choice. Please try again.")


def confirm(message: str, default: bool = False) -> bool:
    hint = "Y/n" if default else "y/N"
    answer = input(f"{message} ({hint}) ").strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")


def labels(options: List[str]) -> List[Tuple[str, str]]:
    """Options whose label is also their value."""
    return [(option, option) for option in options]
