class BaseSignalDetector:
    """Decides whether an abnormality signal is currently active.

    ``evaluate`` raises DetectorError when the signal cannot be read; a read
    failure never counts as "no abnormality".
    """

    @property
    def reason(self) -> str:
        """Operator-facing description of the abnormality."""
        raise NotImplementedError

    async def evaluate(self) -> bool:
        raise NotImplementedError
