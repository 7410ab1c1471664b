#!/usr/bin/env python3
"""
Unit tests for the flow controller.

Step handlers here are scripted fakes; the controller must delegate all
state bookkeeping to the FlowStateManager.
"""

from unittest.mock import MagicMock

import pytest

from nfttrader.core.errors import InvalidStepOutcomeError, UnknownStepError
from nfttrader.core.flow import FlowState, FlowStateManager
from nfttrader.core.flow_controller import Back, Cancel, FlowController, Forward


class ScriptedHandler:
    """Step handler returning queued outcomes and recording the contexts it saw."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.seen_contexts = []

    def __call__(self, context, services):
        self.seen_contexts.append(context)
        return self.outcomes.pop(0)


def linear_handlers(**overrides):
    """Handlers that walk straight to done unless overridden."""
    handlers = {
        FlowState.SELECT_COLLECTION: ScriptedHandler(Forward(FlowState.SELECT_NFT, {"collectionSlug": "cats"})),
        FlowState.SELECT_NFT: ScriptedHandler(Forward(FlowState.SELECT_PRICING_METHOD, {"tokenId": "1"})),
        FlowState.SELECT_PRICING_METHOD: ScriptedHandler(Forward(FlowState.INPUT_PRICING_VALUE, {"method": "absolute"})),
        FlowState.INPUT_PRICING_VALUE: ScriptedHandler(Forward(FlowState.CONFIRM, {"pricingValue": "0.5"})),
        FlowState.CONFIRM: ScriptedHandler(Forward(FlowState.DONE, {"price": "0.5"})),
    }
    handlers.update({FlowState(key.replace("_", "-")): value for key, value in overrides.items()})
    return handlers


class TestStepOutcomes:
    """Test the handler outcome union."""

    def test_outcomes_are_tagged_and_comparable(self):
        assert Forward(FlowState.SELECT_NFT, {"a": 1}) == Forward(FlowState.SELECT_NFT, {"a": 1})
        assert Back() == Back()
        assert Forward(FlowState.SELECT_NFT).kind == "forward"
        assert Back().kind == "back"
        assert Cancel().kind == "cancel"

    def test_forward_defaults_to_empty_delta(self):
        assert Forward(FlowState.SELECT_NFT).context_delta == {}


class TestFlowController:
    """Test driving a flow to a terminal state."""

    def test_forward_path_completes(self):
        manager = FlowStateManager()

        outcome = FlowController(manager, linear_handlers()).run()

        assert outcome.completed
        assert not outcome.cancelled
        assert manager.is_flow_completed()
        assert outcome.context == {
            "collectionSlug": "cats",
            "tokenId": "1",
            "method": "absolute",
            "pricingValue": "0.5",
            "price": "0.5",
        }

    def test_handlers_receive_context_and_services(self):
        services = object()
        received = []

        def collection(context, svc):
            received.append((context, svc))
            return Cancel()

        FlowController(FlowStateManager(initial_context={"wallet": "0xabc"}), {
            FlowState.SELECT_COLLECTION: collection,
        }).run(services)

        assert received == [({"wallet": "0xabc"}, services)]

    def test_back_restores_previous_step(self):
        nft_handler = ScriptedHandler(
            Forward(FlowState.SELECT_PRICING_METHOD, {"tokenId": "1"}),
            Forward(FlowState.SELECT_PRICING_METHOD, {"tokenId": "2"}),
        )
        method_handler = ScriptedHandler(Back(), Forward(FlowState.INPUT_PRICING_VALUE, {"method": "absolute"}))
        handlers = linear_handlers(select_nft=nft_handler, select_pricing_method=method_handler)

        outcome = FlowController(FlowStateManager(), handlers).run()

        assert outcome.completed
        assert outcome.context["tokenId"] == "2"
        # The second visit to select-nft sees the context as it was before tokenId was set
        assert nft_handler.seen_contexts[1] == {"collectionSlug": "cats"}

    def test_back_from_first_step_cancels(self):
        manager = FlowStateManager()

        outcome = FlowController(manager, {FlowState.SELECT_COLLECTION: ScriptedHandler(Back())}).run()

        assert outcome.cancelled
        assert manager.is_flow_cancelled()

    def test_cancel_mid_flow(self):
        handlers = linear_handlers(input_pricing_value=ScriptedHandler(Cancel()))

        outcome = FlowController(FlowStateManager(), handlers).run()

        assert outcome.cancelled
        assert outcome.final_state == FlowState.CANCELLED
        assert outcome.context["method"] == "absolute"

    def test_declining_confirmation_goes_back(self):
        confirm = ScriptedHandler(Back(), Forward(FlowState.DONE, {"price": "0.6"}))
        value = ScriptedHandler(
            Forward(FlowState.CONFIRM, {"pricingValue": "0.5"}),
            Forward(FlowState.CONFIRM, {"pricingValue": "0.6"}),
        )

        outcome = FlowController(
            FlowStateManager(), linear_handlers(confirm=confirm, input_pricing_value=value)
        ).run()

        assert outcome.completed
        assert outcome.context["pricingValue"] == "0.6"
        assert outcome.context["price"] == "0.6"

    def test_on_step_called_after_every_step(self):
        on_step = MagicMock()
        manager = FlowStateManager()

        FlowController(manager, linear_handlers(), on_step=on_step).run()

        assert on_step.call_count == 5
        on_step.assert_called_with(manager)

    def test_missing_handler_raises(self):
        with pytest.raises(UnknownStepError, match="select-nft"):
            FlowController(FlowStateManager(), {
                FlowState.SELECT_COLLECTION: ScriptedHandler(Forward(FlowState.SELECT_NFT)),
            }).run()

    def test_unknown_outcome_raises(self):
        with pytest.raises(InvalidStepOutcomeError):
            FlowController(FlowStateManager(), {FlowState.SELECT_COLLECTION: lambda ctx, svc: "next"}).run()

    def test_handler_exception_propagates_and_keeps_state(self):
        def failing(context, services):
            raise RuntimeError("network down")

        manager = FlowStateManager()
        handlers = linear_handlers(select_pricing_method=failing)

        with pytest.raises(RuntimeError, match="network down"):
            FlowController(manager, handlers).run()

        assert manager.get_current_state() == FlowState.SELECT_PRICING_METHOD

    def test_terminal_manager_runs_no_handlers(self):
        handler = MagicMock()
        manager = FlowStateManager(FlowState.CANCELLED)

        outcome = FlowController(manager, {FlowState.SELECT_COLLECTION: handler}).run()

        assert outcome.cancelled
        handler.assert_not_called()

    def test_resumes_from_current_state(self):
        manager = FlowStateManager(FlowState.CONFIRM, {"pricingValue": "1"})
        handlers = linear_handlers()

        outcome = FlowController(manager, handlers).run()

        assert outcome.completed
        assert handlers[FlowState.SELECT_COLLECTION].seen_contexts == []
