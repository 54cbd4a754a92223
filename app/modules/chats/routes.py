from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.chats.schemas import ChatResponse, MessageCreate, MessageResponse
from app.modules.chats.service import ChatService
from app.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/chats", tags=["chats"])


def get_chat_service(supabase: Client = Depends(get_supabase)) -> ChatService:
    return ChatService(supabase)


@router.get("", response_model=List[ChatResponse])
async def list_chats(
    user_data: Dict = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service)
):
    """Group chats of the events the user belongs to"""
    return service.list_chats(user_data["id"])


@router.get("/{chat_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    chat_id: str,
    limit: int = 100,
    offset: int = 0,
    user_data: Dict = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service)
):
    """Messages of a chat (members only)"""
    return service.list_messages(chat_id, user_data["id"], limit=limit, offset=offset)


@router.post("/{chat_id}/messages", response_model=MessageResponse, status_code=201)
async def post_message(
    chat_id: str,
    message: MessageCreate,
    user_data: Dict = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service)
):
    """Send a message (members only)"""
    return service.post_message(chat_id, user_data["id"], message)
