import bleach


def clean_text(v):
    """Strip all markup from user supplied free text."""
    return bleach.clean((v or '').strip(), tags=set(), strip=True)
