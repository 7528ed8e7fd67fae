from pydantic import BaseModel, Field


class AnalysisRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=50000, description="Text to analyse")
