from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class AuditResult(BaseModel):
    final_displayed_url: str
    performance_score: Optional[float] = None
    form_factor: str = "desktop"

    @classmethod
    def from_lhr(cls, lhr: Dict[str, Any], form_factor: str = "desktop") -> "AuditResult":
        """Build from a Lighthouse result (the JSON `lhr` object)."""
        url = lhr.get("finalDisplayedUrl") or lhr.get("finalUrl") or lhr.get("requestedUrl") or ""
        score = (lhr.get("categories", {}).get("performance") or {}).get("score")
        return cls(
            final_displayed_url=url,
            performance_score=round(score * 100, 2) if score is not None else None,
            form_factor=form_factor,
        )


class DeliveryHeaders(BaseModel):
    content_security_policy: str
    x_frame_options: Optional[str] = None


class PolicyView(BaseModel):
    allowed_origins: List[str] = Field(default_factory=list)
    restricted: bool
    fingerprint: str
    headers: DeliveryHeaders
