from __future__ import annotations

from biopath.api.models import CardInstance, GameState
from biopath.assets.registry import CardKind, ReferenceData
from biopath.engine.outcomes import (
    Advance,
    AdvanceFromCofactor,
    CofactorPreloaded,
    CofactorStaged,
    PlacementOutcome,
    Preload,
    Rejected,
    StageProduct,
    Wrong,
)


def cofactors_satisfied(state: GameState, stage_index: int, *, ref: ReferenceData) -> bool:
    """Every required cofactor (with multiplicity) has its own staged instance."""

    placed = [c.card_id for c in state.staged.get(stage_index, []) if c.kind == CardKind.cofactor]
    for required in ref.stage(stage_index).cofactors:
        if required not in placed:
            return False
        placed.remove(required)
    return True


def has_product_staged(state: GameState, stage_index: int, *, ref: ReferenceData) -> bool:
    product = ref.stage(stage_index).product_card
    return any(c.card_id == product for c in state.staged.get(stage_index, []))


def ready_to_advance(state: GameState, stage_index: int, *, ref: ReferenceData) -> bool:
    return has_product_staged(state, stage_index, ref=ref) and cofactors_satisfied(state, stage_index, ref=ref)


def _any_product_staged(state: GameState, stage_index: int) -> bool:
    return any(c.kind == CardKind.product for c in state.staged.get(stage_index, []))


def _place_cofactor(state: GameState, card: CardInstance, stage_index: int, *, ref: ReferenceData) -> PlacementOutcome:
    stage = ref.stage(stage_index)
    if card.card_id not in stage.cofactors:
        need = ", ".join(ref.card(c).abbreviation for c in stage.cofactors) or "nothing"
        return Rejected(card=card, stage_index=stage_index, reason=f"{stage.abbreviation} needs {need}")

    placed = sum(1 for c in state.staged.get(stage_index, []) if c.card_id == card.card_id)
    if placed >= stage.required_count(card.card_id):
        return Rejected(
            card=card,
            stage_index=stage_index,
            reason=f"{stage.abbreviation} already has {card.abbreviation}",
        )

    state.staged_at(stage_index).append(card)

    if stage_index != state.current_stage:
        return CofactorPreloaded(card=card, stage_index=stage_index)
    if ready_to_advance(state, stage_index, ref=ref):
        return AdvanceFromCofactor(card=card, stage_index=stage_index)
    return CofactorStaged(card=card, stage_index=stage_index)


def _place_product_on_current(state: GameState, card: CardInstance, *, ref: ReferenceData) -> PlacementOutcome:
    idx = state.current_stage
    stage = ref.stage(idx)

    if card.card_id != stage.product_card:
        return Wrong(card=card, stage_index=idx)
    if _any_product_staged(state, idx):
        return Rejected(card=card, stage_index=idx, reason=f"{stage.abbreviation} already has a product card")
    if cofactors_satisfied(state, idx, ref=ref):
        return Advance(card=card, stage_index=idx)

    state.staged_at(idx).append(card)
    return StageProduct(card=card, stage_index=idx)


def _preload_product(state: GameState, card: CardInstance, stage_index: int, *, ref: ReferenceData) -> PlacementOutcome:
    stage = ref.stage(stage_index)

    if card.card_id != stage.product_card:
        need = ref.card(stage.product_card).abbreviation
        return Rejected(card=card, stage_index=stage_index, reason=f"{stage.abbreviation} needs {need}")
    if _any_product_staged(state, stage_index):
        return Rejected(card=card, stage_index=stage_index, reason=f"{stage.abbreviation} already has a product card")

    state.staged_at(stage_index).append(card)
    return Preload(card=card, stage_index=stage_index)


def resolve_placement(state: GameState, card: CardInstance, stage_index: int, *, ref: ReferenceData) -> PlacementOutcome:
    """Validate a placement and stage the card where the rules accept it.

    Does not touch the hand; the caller removes the card for every outcome
    except `Rejected`.
    """

    if card.kind == CardKind.cofactor:
        return _place_cofactor(state, card, stage_index, ref=ref)
    if stage_index == state.current_stage:
        return _place_product_on_current(state, card, ref=ref)
    return _preload_product(state, card, stage_index, ref=ref)
