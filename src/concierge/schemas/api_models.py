from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    text: Optional[str] = None
    session_id: Optional[str] = None


class QuickReplyButton(BaseModel):
    display: str
    payload: str


class ChatResponse(BaseModel):
    source: Optional[str] = None
    category: Optional[str] = None
    text: str
    intent: Optional[str] = None
    confidence: float = 0.0
    quick_replies: List[str] = Field(default_factory=list)
    quick_reply_buttons: List[QuickReplyButton] = Field(default_factory=list)
    payload: Optional[Dict[str, Any]] = None
    sources: List[Dict[str, Any]] = Field(default_factory=list)
    session_id: str
    authenticated: bool = False
    error: bool = False


class LoginRequest(BaseModel):
    username: str
    password: str
    session_id: str


class LogoutRequest(BaseModel):
    session_id: str


class TransferRequest(BaseModel):
    from_account: Optional[str] = Field(default=None, alias="fromAccount")
    to_account: Optional[str] = Field(default=None, alias="toAccount")
    amount: Optional[float] = None

    model_config = {"populate_by_name": True}
