from app.common.controller import BaseController


def get_controllers() -> list[type[BaseController]]:
    from app.conversation.conversation_controller import ChatController

    return [ChatController]
