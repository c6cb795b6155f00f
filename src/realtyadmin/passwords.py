"""Password complexity rules, strength meter and bcrypt hashing."""

import re

import bcrypt

from .errors import ValidationError

MIN_LENGTH = 10
# bcrypt only accepts secrets up to 72 bytes
MAX_BYTES = 72

# (pattern, message) pairs checked in order; every miss is reported
RULES = [
    (re.compile(r"[a-z]"), "Must include lowercase"),
    (re.compile(r"[A-Z]"), "Must include uppercase"),
    (re.compile(r"[0-9]"), "Must include a number"),
    (re.compile(r"[^A-Za-z0-9]"), "Must include a special char"),
]

STRENGTH_LABELS = ["Very Weak", "Weak", "Fair", "Good", "Strong", "Very Strong"]


def password_problems(password: str) -> list[str]:
    if not password:
        return ["Password is required"]
    problems = []
    if len(password) < MIN_LENGTH:
        problems.append(f"Must be at least {MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_BYTES:
        problems.append(f"Must be at most {MAX_BYTES} bytes long")
    problems.extend(message for pattern, message in RULES if not pattern.search(password))
    return problems


def password_strength(password: str) -> int:
    """0-5, one point per satisfied rule. Only used for feedback, never for acceptance."""
    if not password:
        return 0
    score = 1 if len(password) >= MIN_LENGTH else 0
    return score + sum(1 for pattern, _ in RULES if pattern.search(password))


def strength_label(score: int) -> str:
    return STRENGTH_LABELS[max(0, min(score, len(STRENGTH_LABELS) - 1))]


def hash_password(plain: str) -> str:
    secret = plain.encode("utf-8")
    if len(secret) > MAX_BYTES:
        raise ValidationError(
            errors={"password": f"Must be at most {MAX_BYTES} bytes long"}
        )
    return bcrypt.hashpw(secret, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    secret = plain.encode("utf-8")
    # nothing longer can have been hashed
    if len(secret) > MAX_BYTES:
        return False
    return bcrypt.checkpw(secret, hashed.encode("utf-8"))
