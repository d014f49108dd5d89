from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from ..ai_orchestrator import clip_prompt
from ..deps import get_session_id, is_degraded
from ..errors import NoProviderAvailableError, ProviderError
from ...agents import shopping_insights
from ...schemas.ai_models import AIRequest
from ...schemas.io_models import (
    BehaviorAnalysisIn, ChatIn, ContextualIn, ProductInsightsIn, RecommendationsIn,
    ShoppingTriggerIn, SupportIn,
)
from ...utils.logger import get_logger

logger = get_logger("ai")

router = APIRouter()

MEDIA_TYPES = {"image", "audio"}


@router.get("/ai/status")
def ai_status(request: Request):
    status = request.app.state.orchestrator.get_system_status()
    status["agents"] = [agent.get_status() for agent in request.app.state.agents.values()]
    return status


@router.get("/ha/status")
def ha_status(request: Request):
    return request.app.state.orchestrator.get_ha_status()


@router.post("/ai/chat")
def chat(body: ChatIn, request: Request, degraded: bool = Depends(is_degraded)):
    """Crystal consultation; image and audio requests also try to attach generated media."""
    message = body.text()
    if not message.strip():
        raise HTTPException(status_code=400, detail="Message or prompt is required")

    consultant = request.app.state.consultant
    result = consultant.consult(message, body.context, allow_external=not degraded)

    if body.type in MEDIA_TYPES:
        result.media_type = body.type
        if not degraded:
            try:
                media = request.app.state.orchestrator.complete(
                    AIRequest(prompt=clip_prompt(message), type=body.type)
                )
                result.media_url = media.media_url
            except (ProviderError, NoProviderAvailableError, ValidationError) as e:
                logger.info(f"[AI] {body.type} generation unavailable: {e}")

    payload = {
        "content": result.response,
        "provider": result.provider,
        "model": result.model,
        "reasoning": result.reasoning,
        "sentiment": result.sentiment,
        "recommendations": result.recommendations,
    }
    if body.type in MEDIA_TYPES:
        payload["mediaUrl"] = result.media_url
        payload["mediaType"] = result.media_type
    return payload


@router.post("/ai/support")
def support(body: SupportIn, request: Request, session_id: str = Depends(get_session_id),
            degraded: bool = Depends(is_degraded)):
    agent = request.app.state.agents["customer_service"]
    context = dict(body.context or {})
    context["sessionId"] = session_id
    if degraded:
        response = agent.fallback_response(body.message)
    else:
        response = agent.handle_customer_inquiry(body.message, context)
    return {"response": response, "agent": agent.config.name}


@router.post("/ai/contextual")
def contextual(body: ContextualIn):
    return {"suggestions": shopping_insights.contextual_suggestions(body.context.model_dump(by_alias=True))}


@router.post("/ai/product-insights")
def product_insights(body: ProductInsightsIn, request: Request):
    rng = getattr(request.app.state, "insights_rng", None)
    return shopping_insights.product_insights(
        body.product_id, body.user_behavior.model_dump(by_alias=True), rng=rng
    )


@router.post("/ai/behavior-analysis")
def behavior_analysis(body: BehaviorAnalysisIn):
    return shopping_insights.behavior_analysis(body.context.model_dump(by_alias=True))


@router.post("/ai/shopping-trigger")
def shopping_trigger(body: ShoppingTriggerIn):
    return shopping_insights.shopping_trigger(body.trigger, body.user_context.model_dump(by_alias=True))


@router.post("/ai/recommendations")
def recommendations(body: RecommendationsIn, request: Request, degraded: bool = Depends(is_degraded)):
    if degraded:
        return [dict(r) for r in shopping_insights.FALLBACK_RECOMMENDATIONS]
    return shopping_insights.complementary_recommendations(body.product_id, request.app.state.orchestrator)


@router.get("/ai/market-analysis")
def market_analysis():
    return shopping_insights.market_analysis()
