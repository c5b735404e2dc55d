class UpstreamError(Exception):
    """An external service (Slack, Salesforce, Kickfire) failed or refused a call."""

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
