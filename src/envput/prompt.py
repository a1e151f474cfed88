"""Ask the user for input on the terminal."""

import getpass
from typing import Callable, List, Optional

from envput._output import output

Validator = Callable[[str], Optional[str]]


def ask(
    question: str,
    default: Optional[str] = None,
    validate: Optional[Validator] = None,
    secret: bool = False,
) -> str:
    """Ask until the answer passes `validate`.

    `validate` returns an error message for bad answers and None for good
    ones. An empty answer is replaced by `default` if one is given. With
    `secret` the answer is not echoed.

    """
    prompt = question
    if default:
        prompt += " [{}]".format(default)
    prompt += ": "
    while True:
        if secret:
            answer = getpass.getpass(prompt)
        else:
            answer = input(prompt)
        answer = answer.strip()
        if not answer and default is not None:
            answer = default
        error = validate(answer) if validate else None
        if error is None:
            return answer
        output.line(error, red=True)


def confirm(question: str, default: bool = False) -> bool:
    hint = "Y/n" if default else "y/N"
    while True:
        answer = input("{} [{}] ".format(question, hint)).strip().lower()
        if not answer:
            return default
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False
        output.line("Please answer yes or no.", red=True)


def choose(question: str, choices: List[str]) -> int:
    """Let the user pick one of `choices` by number. Returns the index."""
    for number, choice in enumerate(choices, 1):
        output.line("{:>3}) {}".format(number, choice))

    def valid(answer):
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            return None
        return "Please enter a number between 1 and {}.".format(len(choices))

    return int(ask(question, validate=valid)) - 1
