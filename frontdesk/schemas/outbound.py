"""The three outbound message shapes the conversation flows construct."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

MAX_BUTTONS = 3
MAX_LIST_ROWS = 10


class TextMessage(BaseModel):
    kind: Literal["text"] = "text"
    body: str

    def to_payload(self) -> dict:
        return {"type": "text", "text": {"body": self.body}}


class MediaMessage(BaseModel):
    kind: Literal["media"] = "media"
    media_type: Literal["image", "document", "video"] = "image"
    link: str
    caption: str = ""

    def to_payload(self) -> dict:
        return {"type": self.media_type, self.media_type: {"link": self.link, "caption": self.caption}}


class Button(BaseModel):
    id: str
    title: str = Field(max_length=20)


class ListRow(BaseModel):
    id: str
    title: str = Field(max_length=24)
    description: Optional[str] = Field(default=None, max_length=72)


class ListSection(BaseModel):
    title: Optional[str] = None
    rows: list[ListRow]


class InteractiveMessage(BaseModel):
    """Reply buttons (at most three) or a sectioned list."""

    kind: Literal["interactive"] = "interactive"
    body: str
    header: Optional[str] = None
    footer: Optional[str] = None
    buttons: Optional[list[Button]] = None
    list_button: Optional[str] = None
    sections: Optional[list[ListSection]] = None

    @model_validator(mode="after")
    def _check_variant(self) -> "InteractiveMessage":
        if bool(self.buttons) == bool(self.sections):
            raise ValueError("interactive message needs either buttons or list sections")
        if self.buttons and len(self.buttons) > MAX_BUTTONS:
            raise ValueError(f"at most {MAX_BUTTONS} reply buttons are allowed")
        if self.sections:
            if not self.list_button:
                raise ValueError("list messages need a list_button label")
            if sum(len(section.rows) for section in self.sections) > MAX_LIST_ROWS:
                raise ValueError(f"at most {MAX_LIST_ROWS} list rows are allowed")
        return self

    @property
    def option_ids(self) -> list[str]:
        if self.buttons:
            return [button.id for button in self.buttons]
        return [row.id for section in self.sections or [] for row in section.rows]

    def to_payload(self) -> dict:
        interactive: dict = {"body": {"text": self.body}}
        if self.header:
            interactive["header"] = {"type": "text", "text": self.header}
        if self.footer:
            interactive["footer"] = {"text": self.footer}

        if self.buttons:
            interactive["type"] = "button"
            interactive["action"] = {
                "buttons": [{"type": "reply", "reply": {"id": b.id, "title": b.title}} for b in self.buttons]
            }
        else:
            interactive["type"] = "list"
            interactive["action"] = {
                "button": self.list_button,
                "sections": [section.model_dump(exclude_none=True) for section in self.sections],
            }
        return {"type": "interactive", "interactive": interactive}


OutboundMessage = TextMessage | MediaMessage | InteractiveMessage
