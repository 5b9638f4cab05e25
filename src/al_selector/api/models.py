from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field

from al_selector.patch import Patch


class PatchIn(BaseModel):
    id: Union[int, str]
    features: List[float] = Field(min_length=1)
    label: Optional[int] = None

    def to_patch(self) -> Patch:
        return Patch(id=self.id, features=self.features, label=self.label)


class SeedRequest(BaseModel):
    patches: List[PatchIn] = Field(min_length=1)


class UnlabeledRequest(BaseModel):
    patches: List[PatchIn] = Field(min_length=1)


class BatchRequest(BaseModel):
    size: int = Field(ge=1)


class LabelsRequest(BaseModel):
    labels: Dict[str, int] = Field(min_length=1)


class ClassifyRequest(BaseModel):
    patches: List[PatchIn] = Field(min_length=1)
    sort: bool = False
