class ChatHistorySaveError(Exception):
    """Raised when a finished turn could not be written to the chat history."""

    def __init__(self, message: str = "Failed to save chat history"):
        super().__init__(message)


class UnknownModelError(ValueError):
    """Raised when a model id does not resolve to a configured chatbot."""

    def __init__(self, model_id: str):
        super().__init__(f"Unknown model: {model_id}")
        self.model_id = model_id
