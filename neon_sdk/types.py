class SecretStr(str):
    """An API key, except it's hard to accidentally print or log it."""

    def __str__(self) -> str:
        return "*****"

    def __repr__(self) -> str:
        return "*****"

    def __format__(self, format_spec: str) -> str:
        return "*****"

    def get_secret_value(self) -> str:
        return str.__str__(self)
