import hmac


class UploadAuthorizer:
    def __init__(self, upload_secret: str):
        self.upload_secret = upload_secret.encode("utf-8")

    def verify(self, token: str | None) -> bool:
        if token is None:
            return False
        return hmac.compare_digest(self.upload_secret, token.encode("utf-8"))


def delete_key_matches(expected: str, supplied: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))
