"""Supabase-backed chat history."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from macro_coach.domain.records import CoachMessage
from macro_coach.services.sessions import MessageRepository


@dataclass
class SupabaseMessageRepository(MessageRepository):
    """Supabase implementation for chat messages."""

    client: Client

    def append_message(self, user_id: str, message: CoachMessage) -> None:
        """Store a message; re-sending the same id overwrites it."""
        self.client.table("chat_messages").upsert(
            {
                "id": message.id,
                "user_id": user_id,
                "role": message.role,
                "content": message.content,
                "metadata": message.metadata,
                "created_at": message.created_at.isoformat(),
            }
        ).execute()

    def list_messages(self, user_id: str, limit: int) -> list[CoachMessage]:
        """Return the latest ``limit`` messages in chronological order."""
        response = (
            self.client.table("chat_messages")
            .select("id, role, content, metadata, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        messages = [
            CoachMessage(
                id=str(row["id"]),
                role=row["role"],
                content=row["content"],
                created_at=datetime.fromisoformat(str(row["created_at"])),
                metadata=row.get("metadata"),
            )
            for row in response.data or []
        ]
        messages.reverse()
        return messages
