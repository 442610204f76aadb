"""Upload Schemas — signed upload ticket and committed media views."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.core.repository_protocols import UploadCredential
from app.services.media_upload import CommittedMedia


class UploadTicket(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    path: str
    token: str
    signed_url: str

    @classmethod
    def from_credential(cls, credential: UploadCredential) -> "UploadTicket":
        return cls(
            path=credential.path,
            token=credential.token,
            signed_url=credential.signed_url,
        )


class MediaView(BaseModel):
    url: str
    mime: str
    type: str

    @classmethod
    def from_media(cls, media: CommittedMedia) -> "MediaView":
        return cls(url=media.url, mime=media.mime, type=media.type.value)
