"""Content delivery and embeddable script endpoints."""
import json

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from splitlab.api.deps import RateLimitGuard, get_experiment_service, to_http_exception
from splitlab.config import get_settings
from splitlab.middleware.logging import get_logger
from splitlab.schemas.analytics import ContentResponse
from splitlab.services.errors import SplitLabError
from splitlab.services.experiments import ExperimentService

router = APIRouter()
settings = get_settings()
logger = get_logger()

EMBED_SCRIPT_TEMPLATE = """
(function(experimentId, apiUrl) {
  var target = document.getElementById('ab-test-' + experimentId);
  if (!target) { return; }
  fetch(apiUrl + '/content/' + experimentId)
    .then(function(res) { return res.json(); })
    .then(function(data) {
      target.innerHTML = data.content;
      var locale = (navigator.language || '').split('-');
      fetch(apiUrl + '/track-view/' + experimentId, {
        method: 'POST',
        headers: {'Content-Type': 'application/json'},
        body: JSON.stringify({
          variation_id: data.variation_id,
          user_agent: navigator.userAgent,
          country: locale.length > 1 ? locale[1] : null
        })
      });
    })
    .catch(function(error) { console.error('A/B test error:', error); });
})(%(experiment_id)s, %(api_url)s);
"""


def render_embed_script(experiment_id: str, api_url: str) -> str:
    """Build the JS snippet a host page includes to show and track a variation."""
    return EMBED_SCRIPT_TEMPLATE % {
        # json.dumps gives a safely quoted JS string literal
        "experiment_id": json.dumps(experiment_id),
        "api_url": json.dumps(api_url.rstrip("/")),
    }


def render_embed_tags(experiment_id: str, api_url: str) -> str:
    """HTML a host page adds to show the experiment: target div plus script tag."""
    return (
        f'<div id="ab-test-{experiment_id}"></div>\n'
        f'<script src="{api_url.rstrip("/")}/embed/{experiment_id}"></script>'
    )


@router.get(
    "/content/{experiment_id}",
    response_model=ContentResponse,
    dependencies=[Depends(RateLimitGuard("content"))]
)
def get_content(
    experiment_id: str,
    service: ExperimentService = Depends(get_experiment_service)
):
    """Serve a weighted-random variation of the experiment."""
    try:
        variation = service.choose_content(experiment_id)
    except SplitLabError as e:
        raise to_http_exception(e)

    logger.info(
        "content_served",
        experiment_id=experiment_id,
        variation_id=str(variation.id),
        variation_type=variation.type.value
    )
    return ContentResponse(content=variation.content, variation_id=variation.id)


@router.get("/embed/{experiment_id}")
def get_embed_script(experiment_id: str):
    """
    Serve the embed script for an experiment.

    Host pages add ``<div id="ab-test-{experiment_id}"></div>`` and load this
    script; it fills the div with the chosen variation and records the view.
    """
    return Response(
        content=render_embed_script(experiment_id, settings.public_api_url),
        media_type="application/javascript",
        headers={"Cache-Control": "no-cache"}
    )
