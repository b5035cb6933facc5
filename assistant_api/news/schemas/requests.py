"""News API request schemas"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NewsRequest(BaseModel):
    """Request model for the news endpoint; every field is optional"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    country_code: Optional[str] = Field(None, max_length=16, description="ISO country code, e.g. US or IN")
    city: Optional[str] = Field(None, max_length=100, description="City for local headlines")
    category: Optional[str] = Field(None, max_length=50, description="News category tag")
    query: Optional[str] = Field(None, max_length=200, description="Free-text news search")
