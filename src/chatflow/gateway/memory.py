"""In-memory tag and conversation stores."""

import uuid


class InMemoryTagStore:
    """Tags keyed by (company_id, name), associations as a set of pairs."""

    def __init__(self) -> None:
        self.tags: dict[tuple[str, str], str] = {}
        self.associations: set[tuple[str, str]] = set()

    async def ensure_tag(self, company_id: str, name: str) -> str:
        key = (company_id, name)
        if key not in self.tags:
            self.tags[key] = str(uuid.uuid4())
        return self.tags[key]

    async def associate(self, contact_id: str, tag_id: str) -> None:
        self.associations.add((contact_id, tag_id))

    def tags_of(self, contact_id: str) -> set[str]:
        """Names of the tags attached to a contact."""
        names = {tag_id: name for (_, name), tag_id in self.tags.items()}
        return {names[tag_id] for cid, tag_id in self.associations if cid == contact_id}


class InMemoryConversationStore:
    """Remembers which conversations were flagged for a human."""

    def __init__(self) -> None:
        self.flagged: list[str] = []

    async def flag_needs_attention(self, conversation_id: str) -> None:
        if conversation_id not in self.flagged:
            self.flagged.append(conversation_id)
