from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from app.chatbot.chatbot_models import ChatbotFinishRequest, ChatbotFinishResponse
from app.chatbot.data_stream import DataStreamWriter
from app.chatbot.stream_finalizer import StreamFinalizer
from app.common.config import ServiceFactory
from app.common.controller import BaseController
from app.common.exceptions import ChatHistorySaveError
from app.common.models import ChatHistoryConfig, is_anonymous
from app.conversation.conversation_models import ActionResult, ConversationPageResponse, ConversationResponse
from app.conversation.conversation_services import ConversationService


class ChatController(BaseController):
    prefix = "chats"

    @property
    def router(self) -> APIRouter:
        """
        Returns the APIRouter instance for the ChatController.
        Every route acts on behalf of the owner populated by UserPopulationMiddleware.
        """

        @self.api_router.get(
            "",
            response_model=ConversationPageResponse,
            responses={200: {"description": "A page of the user's chats, newest first"}},
        )
        async def get_chats_page(
            request: Request,
            limit: int = Query(default=ChatHistoryConfig.CHAT_PAGE_SIZE, ge=1, le=100),
            offset: int = Query(default=0, ge=0),
            conversation_service: ConversationService = Depends(ServiceFactory.get_conversation_service),
        ) -> ConversationPageResponse:
            page = await conversation_service.get_chats_page(self.get_user_id(request), limit=limit, offset=offset)
            return ConversationPageResponse.from_page(page)

        @self.api_router.delete(
            "",
            responses={204: {"description": "All chats of the user deleted"}},
            status_code=204,
        )
        async def clear_chats(
            request: Request,
            conversation_service: ConversationService = Depends(ServiceFactory.get_conversation_service),
        ) -> Response:
            user_id = self.get_user_id(request)
            result = await conversation_service.clear_chats(user_id)
            return _action_response(result, user_id)

        @self.api_router.get(
            "/shared/{chat_id}",
            response_model=ConversationResponse,
            responses={404: {"description": "Chat does not exist or was not shared"}},
        )
        async def get_shared_chat(
            chat_id: str,
            conversation_service: ConversationService = Depends(ServiceFactory.get_conversation_service),
        ) -> ConversationResponse:
            conversation = await conversation_service.get_shared_chat(chat_id)
            if not conversation:
                raise HTTPException(status_code=404, detail=f"Shared chat {chat_id} was not found")
            return ConversationResponse.from_conversation(conversation)

        @self.api_router.get(
            "/{chat_id}",
            response_model=ConversationResponse,
            responses={404: {"description": "Chat not found for this user"}},
        )
        async def get_chat(
            chat_id: str,
            request: Request,
            conversation_service: ConversationService = Depends(ServiceFactory.get_conversation_service),
        ) -> ConversationResponse:
            conversation = await conversation_service.get_chat(chat_id, self.get_user_id(request))
            if not conversation:
                raise HTTPException(status_code=404, detail=f"Chat {chat_id} was not found")
            return ConversationResponse.from_conversation(conversation)

        @self.api_router.delete(
            "/{chat_id}",
            responses={204: {"description": "Chat deleted successfully"}},
            status_code=204,
        )
        async def delete_chat(
            chat_id: str,
            request: Request,
            conversation_service: ConversationService = Depends(ServiceFactory.get_conversation_service),
        ) -> Response:
            user_id = self.get_user_id(request)
            result = await conversation_service.delete_chat(chat_id, user_id)
            return _action_response(result, user_id)

        @self.api_router.post(
            "/{chat_id}/share",
            response_model=ConversationResponse,
            responses={404: {"description": "Chat not found for this user"}},
        )
        async def share_chat(
            chat_id: str,
            request: Request,
            conversation_service: ConversationService = Depends(ServiceFactory.get_conversation_service),
        ) -> ConversationResponse:
            conversation = await conversation_service.share_chat(chat_id, self.get_user_id(request))
            if not conversation:
                raise HTTPException(status_code=404, detail=f"Chat {chat_id} was not found")
            return ConversationResponse.from_conversation(conversation)

        @self.api_router.post(
            "/{chat_id}/finish",
            response_model=ChatbotFinishResponse,
            responses={500: {"description": "Failed to save chat history"}},
        )
        async def finish_stream(
            chat_id: str,
            body: ChatbotFinishRequest,
            request: Request,
            stream_finalizer: StreamFinalizer = Depends(ServiceFactory.get_stream_finalizer),
        ) -> ChatbotFinishResponse:
            """
            Called by the streaming layer once a response has been fully streamed.
            Returns the annotations that were written while finalizing the turn.
            """
            data_stream = DataStreamWriter()
            try:
                await stream_finalizer.finalize(body.to_stream_finish_request(chat_id, self.get_user_id(request)), data_stream)
            except ChatHistorySaveError as e:
                raise HTTPException(status_code=500, detail=str(e))
            finally:
                data_stream.close()
            return ChatbotFinishResponse(annotations=data_stream.annotations)

        return self.api_router


def _action_response(result: ActionResult, user_id: str) -> Response:
    if result.ok:
        return Response(status_code=204)
    raise HTTPException(status_code=403 if is_anonymous(user_id) else 500, detail=result.error)
