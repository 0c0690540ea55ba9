from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    """Returned by the upload endpoint; pass it straight into ``design_files`` when creating an order."""
    file_name: str
    file_url: str = Field(..., description="Opaque blob reference. Do not parse it.")
    file_type: str
    file_size: int
