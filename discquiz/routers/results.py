from fastapi import APIRouter, Depends, Request

from discquiz.core.config import settings
from discquiz.core.errors import ValidationError
from discquiz.core.metrics import inc_counter
from discquiz.data.content import ContentTables, get_content
from discquiz.engine.classifier import classify
from discquiz.engine.codec import build_share_url, decode_share_params
from discquiz.i18n.ko_messages import ShareMessages
from discquiz.services.screens import result_payload

router = APIRouter(prefix="/results", tags=["results"])


@router.get("", response_model=dict)
def shared_result(request: Request, content: ContentTables = Depends(get_content)):
    """Rebuild a result screen from share-link parameters without opening a session."""
    shared = decode_share_params(dict(request.query_params))
    if shared is None:
        raise ValidationError(ShareMessages.INCOMPLETE_LINK, detail={"params": sorted(request.query_params.keys())})
    inc_counter("results.shared_views")
    classification = classify(shared.tally, content.results, content.result_index)
    url = build_share_url(settings.share_base_url, shared.tally, shared.age_group, shared.gender)
    return result_payload(classification, shared.tally, shared.age_group, shared.effective_gender, url)
