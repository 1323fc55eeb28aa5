from __future__ import annotations

import dataclasses

import pytest

from biopath.api.models import GameState
from biopath.assets.registry import TCA_CARDS, TCA_STAGES, ReferenceData
from biopath.engine.outcomes import (
    Advance,
    AdvanceFromCofactor,
    CofactorPreloaded,
    CofactorStaged,
    Preload,
    Rejected,
    StageProduct,
    Wrong,
)
from biopath.engine.placement import cofactors_satisfied, resolve_placement


def _staged_ids(state: GameState, idx: int) -> list[str]:
    return [c.card_id for c in state.staged[idx]]


def test_product_without_cofactor_is_staged(blank_state: GameState, ref: ReferenceData, make_card) -> None:
    card = make_card("citrate")

    outcome = resolve_placement(blank_state, card, 0, ref=ref)

    assert isinstance(outcome, StageProduct)
    assert blank_state.staged[0] == [card]


def test_product_with_cofactor_ready_advances(blank_state: GameState, ref: ReferenceData, make_card) -> None:
    blank_state.staged[0] = [make_card("acetyl-coa")]

    outcome = resolve_placement(blank_state, make_card("citrate"), 0, ref=ref)

    assert isinstance(outcome, Advance)
    # The advancing card is consumed by the transition, never staged.
    assert _staged_ids(blank_state, 0) == ["acetyl-coa"]


def test_last_cofactor_advances(blank_state: GameState, ref: ReferenceData, make_card) -> None:
    blank_state.staged[0] = [make_card("citrate")]

    outcome = resolve_placement(blank_state, make_card("acetyl-coa"), 0, ref=ref)

    assert isinstance(outcome, AdvanceFromCofactor)


def test_cofactor_staged_while_product_missing(blank_state: GameState, ref: ReferenceData, make_card) -> None:
    outcome = resolve_placement(blank_state, make_card("acetyl-coa"), 0, ref=ref)
    assert isinstance(outcome, CofactorStaged)


def test_wrong_product_on_current_stage(blank_state: GameState, ref: ReferenceData, make_card) -> None:
    outcome = resolve_placement(blank_state, make_card("malate"), 0, ref=ref)

    assert isinstance(outcome, Wrong)
    assert blank_state.staged[0] == []


def test_second_product_is_rejected(blank_state: GameState, ref: ReferenceData, make_card) -> None:
    blank_state.staged[0] = [make_card("citrate")]

    outcome = resolve_placement(blank_state, make_card("citrate"), 0, ref=ref)

    assert isinstance(outcome, Rejected)
    assert outcome.reason == "OAA already has a product card"


@pytest.mark.parametrize(
    ("card_id", "stage_index", "reason"),
    [
        ("nad+", 0, "OAA needs AcCoA"),
        ("nad+", 1, "CIT needs nothing"),
        ("citrate", 2, "ICIT needs AKG"),
    ],
)
def test_rejection_reasons(blank_state: GameState, ref: ReferenceData, make_card, card_id, stage_index, reason) -> None:
    outcome = resolve_placement(blank_state, make_card(card_id), stage_index, ref=ref)

    assert isinstance(outcome, Rejected)
    assert outcome.reason == reason
    assert blank_state.all_staged() == []


def test_extra_cofactor_is_rejected(blank_state: GameState, ref: ReferenceData, make_card) -> None:
    blank_state.staged[3] = [make_card("nad+")]

    outcome = resolve_placement(blank_state, make_card("nad+"), 3, ref=ref)

    assert isinstance(outcome, Rejected)
    assert outcome.reason == "AKG already has NAD⁺"


def test_preloading_future_stages(blank_state: GameState, ref: ReferenceData, make_card) -> None:
    product = resolve_placement(blank_state, make_card("alpha-ketoglutarate"), 2, ref=ref)
    cofactor = resolve_placement(blank_state, make_card("nad+"), 2, ref=ref)

    assert isinstance(product, Preload)
    # Even a completing cofactor only preloads off the current stage.
    assert isinstance(cofactor, CofactorPreloaded)
    assert _staged_ids(blank_state, 2) == ["alpha-ketoglutarate", "nad+"]


def test_cofactor_multiplicity_is_respected(blank_state: GameState, make_card) -> None:
    stages = list(TCA_STAGES)
    stages[3] = dataclasses.replace(stages[3], cofactors=("nad+", "nad+", "coa"))
    ref = ReferenceData.from_rows(stages=stages, cards=TCA_CARDS)

    blank_state.staged[3] = [make_card("nad+"), make_card("coa")]
    assert not cofactors_satisfied(blank_state, 3, ref=ref)

    second = resolve_placement(blank_state, make_card("nad+"), 3, ref=ref)
    assert isinstance(second, CofactorPreloaded)
    assert cofactors_satisfied(blank_state, 3, ref=ref)

    third = resolve_placement(blank_state, make_card("nad+"), 3, ref=ref)
    assert isinstance(third, Rejected)
