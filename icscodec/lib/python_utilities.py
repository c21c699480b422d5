def to_normal_str(text):
    """
    Make sure we return a normal string with LF line endings, whether
    we got bytes or str, CRLF or LF.  A leading byte order mark is dropped.
    """
    if text is None:
        return text
    if not isinstance(text, str):
        text = text.decode("utf-8")
    if text.startswith("\ufeff"):
        text = text[1:]
    text = text.replace("\r\n", "\n")
    return text
