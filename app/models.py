from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class Header(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Serialised as the document key clients already read.
    id: str = Field(alias="_id")
    delete_key: str
    content_type: str = ""
    file_extension: str = ""
    content_length: int = Field(ge=0, le=2**32 - 1)
    uploaded_at: int = Field(ge=0)
    total_chunks: int = Field(ge=0, le=2**32 - 1)


class Chunk(BaseModel):
    parent_id: str
    index: int = Field(ge=1)
    data: bytes


class ErrorResponse(BaseModel):
    error: str


@dataclass
class StoredObject:
    header: Header
    data: bytes
