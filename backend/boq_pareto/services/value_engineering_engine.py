"""Value Engineering Engine — bounded cost-saving alternatives for a single BoQ item."""
import json
import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from boq_pareto.config import (
    VE_CATEGORY_BOUNDS,
    VE_FALLBACK_SAVING_PCT,
    VE_MAX_ALTERNATIVES,
    VE_RATE_TOLERANCE,
    VE_SECOND_OPTION_FACTOR,
)
from boq_pareto.services.errors import InvalidArgumentError
from boq_pareto.services.llm_client import LLMClient, get_system_prompt

logger = logging.getLogger("boq-pareto-ve")

FALLBACK_OPTIONS: dict[str, list[str]] = {
    "structure": [
        "Use a high-strength concrete mix with an optimized reinforcement design",
        "Adopt a modular formwork system to speed up construction",
    ],
    "finishing": [
        "Use prefabricated finishing panels",
        "Replace decorative elements with cost-effective alternatives",
    ],
    "mep": [
        "Optimize pipe and duct routing to reduce material usage",
        "Use energy-efficient standard MEP components",
    ],
    "other": [
        "Standardize specifications and negotiate with suppliers",
        "Adopt lean construction techniques",
    ],
}


@dataclass
class VERequest:
    item_name: str
    item_description: str
    quantity: float
    unit_rate: float
    total_cost: float
    work_category: str = "structure"


@dataclass
class VEAlternative:
    description: str
    new_unit_rate: float
    new_total_cost: float
    estimated_saving: float
    saving_percent: float
    trade_offs: str


@dataclass
class VEResult:
    item_name: str
    description: str
    quantity: float
    unit_rate: float
    total_cost: float
    alternatives: list = field(default_factory=list)
    notes: list = field(default_factory=list)


def round2(n: float) -> float:
    return round(n, 2)


def category_bounds(category: str) -> dict:
    return VE_CATEGORY_BOUNDS.get(category, VE_CATEGORY_BOUNDS["other"])


def parse_model_payload(content: Optional[str]) -> Optional[dict]:
    """Extract the outermost JSON object from a model reply; None if unusable."""
    if not content:
        return None
    start = content.find("{")
    end = content.rfind("}")
    text = content[start:end + 1] if start != -1 and end != -1 else content
    try:
        payload = json.loads(text.strip())
    except json.JSONDecodeError:
        try:
            payload = json.loads(text.strip().replace("'", '"'))
        except json.JSONDecodeError:
            logger.warning(f"VE model reply is not JSON: {content[:200]!r}")
            return None
    return payload if isinstance(payload, dict) else None


def _positive_finite(value) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


class ValueEngineeringEngine:
    """
    Asks the LLM for up to two alternatives and forces each one into the
    category's saving band and unit-rate floor. Falls back to fixed
    category-specific options when the model fails or returns nothing usable.
    """

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or LLMClient()

    async def suggest(self, req: VERequest) -> VEResult:
        if not (req.item_name or "").strip() or not (req.item_description or "").strip():
            raise InvalidArgumentError("itemName and itemDescription are required")
        if not all(_positive_finite(v) for v in (req.quantity, req.unit_rate, req.total_cost)):
            raise InvalidArgumentError("quantity, unitRate, and totalCost must be positive numbers")

        notes: list[str] = []
        category = (req.work_category or "structure").strip().lower()
        bounds = category_bounds(category)
        min_pct, max_pct = bounds["suggested_range_pct"]
        max_allowed_pct = (1 - bounds["min_unit_factor"]) * 100

        derived_rate = req.total_cost / req.quantity
        base_rate = req.unit_rate
        if abs(base_rate - derived_rate) / derived_rate > VE_RATE_TOLERANCE:
            notes.append("Adjusted unit rate to match total cost divided by quantity.")
            base_rate = derived_rate
        base_total = base_rate * req.quantity

        proposals = await self._ask_model(req, category, base_rate, base_total, min_pct, max_pct, max_allowed_pct, notes)

        alternatives = []
        for proposal in proposals:
            alternatives.append(self._bound_alternative(
                proposal, req.quantity, base_rate, base_total, bounds, min_pct, max_pct, max_allowed_pct, notes,
            ))

        if not alternatives:
            alternatives = self._fallback_alternatives(category, req.quantity, base_rate, base_total, bounds, max_allowed_pct)

        return VEResult(
            item_name=req.item_name,
            description=req.item_description,
            quantity=req.quantity,
            unit_rate=round2(base_rate),
            total_cost=round2(base_total),
            alternatives=alternatives[:VE_MAX_ALTERNATIVES],
            notes=notes,
        )

    async def _ask_model(self, req, category, base_rate, base_total, min_pct, max_pct, max_allowed_pct, notes) -> list[dict]:
        messages = [
            {"role": "system", "content": get_system_prompt("value_engineer")},
            {"role": "user", "content": "\n".join([
                "Original item:",
                f"- Name: {req.item_name.strip()}",
                f"- Description: {req.item_description.strip()}",
                f"- Quantity: {req.quantity}",
                f"- Unit rate: {round2(base_rate)}",
                f"- Total cost: {round2(base_total)}",
                f"- Category: {category}",
                "",
                f"Produce 1-{VE_MAX_ALTERNATIVES} category-specific value engineering alternatives. For each give:",
                "- description",
                f"- savingPercent (number, {min_pct}-{max_pct}, never above {round2(max_allowed_pct)})",
                "- tradeOffs (risks or considerations)",
                "",
                "Reply with strict JSON only, matching:",
                '{"alternatives":[{"description":"...","savingPercent":12.5,"tradeOffs":"..."}]}',
            ])},
        ]
        try:
            content = await self.llm.chat(messages, temperature=0.5, json_mode=True, max_tokens=800)
        except Exception as exc:
            logger.warning(f"VE model call failed: {exc}")
            notes.append(f"Model generation failed ({exc}); using fallback alternatives.")
            return []

        payload = parse_model_payload(content)
        raw = (payload or {}).get("alternatives") or []
        proposals = []
        for alt in raw[:VE_MAX_ALTERNATIVES]:
            if not isinstance(alt, dict) or not str(alt.get("description") or "").strip():
                continue
            pct = alt.get("savingPercent")
            if isinstance(pct, (int, float)) and not 0 <= pct <= 100:
                continue
            proposals.append(alt)
        if not proposals:
            notes.append("Model returned no usable structured alternatives; using fallback alternatives.")
        return proposals

    def _bound_alternative(self, proposal, quantity, base_rate, base_total, bounds, min_pct, max_pct, max_allowed_pct, notes) -> VEAlternative:
        raw_pct = proposal.get("savingPercent")
        if isinstance(raw_pct, (int, float)) and math.isfinite(raw_pct):
            pct = max(0.0, min(100.0, float(raw_pct)))
        else:
            pct = (min_pct + max_pct) / 2

        proposed = pct
        pct = min(max(pct, min_pct), max_pct)
        if pct != proposed:
            notes.append(f"Adjusted model saving from {round2(proposed)}% to {round2(pct)}% to fit the category range.")
        if pct > max_allowed_pct:
            notes.append(f"Capped saving at {round2(max_allowed_pct)}% by the category limit.")
            pct = max_allowed_pct

        unit = max(base_rate * (1 - pct / 100), base_rate * bounds["min_unit_factor"])
        new_rate = round2(unit)
        new_total = round2(new_rate * quantity)
        saving = round2(base_total - new_total)
        if saving < 0:
            new_rate = round2(base_rate)
            new_total = round2(base_total)
            saving = 0.0

        return VEAlternative(
            description=str(proposal["description"]).strip(),
            new_unit_rate=new_rate,
            new_total_cost=new_total,
            estimated_saving=saving,
            saving_percent=round2(saving / base_total * 100) if base_total > 0 else 0.0,
            trade_offs=str(proposal.get("tradeOffs") or "").strip() or "None",
        )

    def _fallback_alternatives(self, category, quantity, base_rate, base_total, bounds, max_allowed_pct) -> list[VEAlternative]:
        pct = min(VE_FALLBACK_SAVING_PCT, max_allowed_pct)
        options = FALLBACK_OPTIONS.get(category, FALLBACK_OPTIONS["structure"])
        trade_off = (
            "Requires testing and supplier coordination"
            if category == "structure"
            else "Requires coordination with the contractor"
        )

        alternatives = []
        unit = max(base_rate * (1 - pct / 100), base_rate * bounds["min_unit_factor"])
        for description in options[:VE_MAX_ALTERNATIVES]:
            new_total = round2(unit * quantity)
            saving = max(0.0, round2(base_total - new_total))
            alternatives.append(VEAlternative(
                description=description,
                new_unit_rate=round2(unit),
                new_total_cost=new_total,
                estimated_saving=saving,
                saving_percent=round2(saving / base_total * 100) if base_total > 0 else 0.0,
                trade_offs=trade_off,
            ))
            unit *= VE_SECOND_OPTION_FACTOR
        return alternatives
