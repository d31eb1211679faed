from filevault.core.settings import DECRYPTED_SUFFIX, ENCRYPTED_SUFFIX


def encrypted_name(source: str) -> str:
    return f"{source}{ENCRYPTED_SUFFIX}"  # "a.txt" → "a.txt.enc"


def decrypted_name(source: str) -> str:
    # "a.txt.enc" → "a.txt", anything else gets ".dec"
    if source.endswith(ENCRYPTED_SUFFIX) and len(source) > len(ENCRYPTED_SUFFIX):
        return source[: -len(ENCRYPTED_SUFFIX)]
    return f"{source}{DECRYPTED_SUFFIX}"
