def mask_token(token: str | None, visible: int = 4) -> str:
    """Hide all but the last few characters of a token for logging."""
    if not token:
        return "(none)"
    if len(token) <= visible:
        return "*" * len(token)
    return f"{'*' * 8}{token[-visible:]}"
