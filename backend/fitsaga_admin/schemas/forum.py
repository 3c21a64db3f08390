# fitsaga_admin/schemas/forum.py
from typing import List, Literal, Optional

from pydantic import Field

from fitsaga_admin.schemas.common import FirestoreModel, Timestamp, parse_document

ThreadCategory = Literal["question", "discussion", "general"]
ThreadStatus = Literal["open", "closed", "resolved"]


class ForumReply(FirestoreModel):
    id: str
    content: str = Field(..., min_length=1)
    author_id: str
    author_name: Optional[str] = None
    likes: int = 0
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None


class ForumReplyIn(FirestoreModel):
    content: str = Field(..., min_length=1, max_length=5000)


class ForumThreadCreate(FirestoreModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    category: ThreadCategory = "general"
    image_url: Optional[str] = None


class ForumThreadUpdate(FirestoreModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[ThreadCategory] = None
    status: Optional[ThreadStatus] = None
    image_url: Optional[str] = None


class ForumThread(FirestoreModel):
    id: str
    title: str
    content: str
    author_id: str
    author_name: Optional[str] = None
    image_url: Optional[str] = None
    category: ThreadCategory = "general"
    status: ThreadStatus = "open"
    likes: int = 0
    replies: List[ForumReply] = Field(default_factory=list)
    reply_count: int = 0
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None
    last_activity: Optional[Timestamp] = None


def parse_forum_thread(doc_id: str, data: Optional[dict]) -> ForumThread:
    return parse_document(ForumThread, doc_id, data)
