"""
Router chat: messages between an order's user and its mitra.
"""
from fastapi import APIRouter, Depends

from core.dependencies import Principal, get_current_principal
from models.catalog import ChatMessage, ChatMessageCreate
from services import chat_service

router = APIRouter()


@router.get("/{order_id}", response_model=list[ChatMessage], summary="Conversation of an order")
async def list_messages(order_id: str, principal: Principal = Depends(get_current_principal)):
    return await chat_service.list_messages(order_id, principal)


@router.post("", response_model=ChatMessage, status_code=201, summary="Send a message")
async def send_message(body: ChatMessageCreate, principal: Principal = Depends(get_current_principal)):
    return await chat_service.send_message(body.order_id, principal, body.message)
