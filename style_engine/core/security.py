def redact_user_id(user_id: str | None) -> str:
    """
    Redact a user id for logging purposes.

    User ids come from the auth provider and tie a log line to a person's
    wardrobe history, so logs only carry a short prefix (first 6 characters
    followed by ***), enough to correlate lines for one user.
    """
    if not user_id:
        return "None"
    if len(user_id) <= 6:
        return user_id
    return f"{user_id[:6]}***"
