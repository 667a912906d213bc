from __future__ import annotations

"""LangGraph turn loop shared by the orchestrator and pre-tasks.

Graph
-----
``call_model`` → (``execute_tools`` | ``call_model`` | END)
``execute_tools`` → (``call_model`` | ``rollback``)
``rollback`` → END

One pass through ``call_model`` is one turn: the model is asked for the next
assistant message given the full history. A message with tool calls routes to
``execute_tools``; a message without tool calls either ends the loop (final
answer) or, for a pre-task whose done marker is absent, goes back to the
model.

Tool execution is atomic per turn. Results are collected in a pending batch
and appended only after every call in the message has run. When the approver
declines any call, the batch is discarded and ``rollback`` truncates the
history to its length before the turn's assistant message.

Errors raised by the model client, the turn budget check or an empty response
propagate out of ``run`` unchanged. Messages appended before the failure stay
in the history.
"""

from typing import Any, Dict, List, Optional, Sequence

from langgraph.graph import END, StateGraph

from agent_confine.core.logging_config import get_logger

from ..errors import EmptyResponseError, MaxTurnsExceededError
from ..hooks import Approver, ConversationObserver, ModelClient, ToolDispatcher
from ..sandbox.fallback import FallbackNegotiator
from ..schemas.domain import Message, ToolCall, ToolResult
from ..tools.definitions import RUN_SHELL, ToolDefinition
from .models import ConversationState, LoopOutcome, LoopStatus, _LoopState

logger = get_logger(__name__)


class ConversationLoop:
    """Drive a conversation history through model turns and tool execution.

    The loop holds no history of its own; ``run`` mutates the
    ``ConversationState`` it is given, so one loop instance serves both the
    primary conversation and every pre-task.
    """

    def __init__(
        self,
        *,
        client: ModelClient,
        tools: Sequence[ToolDefinition],
        approver: Approver,
        negotiator: FallbackNegotiator,
        dispatcher: ToolDispatcher,
        observer: ConversationObserver,
    ) -> None:
        self._client = client
        self._tools = list(tools)
        self._approver = approver
        self._negotiator = negotiator
        self._dispatcher = dispatcher
        self._observer = observer
        self._graph = self._build_graph()

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        g: StateGraph = StateGraph(_LoopState)
        g.add_node("call_model", self._node_call_model)
        g.add_node("execute_tools", self._node_execute_tools)
        g.add_node("rollback", self._node_rollback)

        g.set_entry_point("call_model")
        g.add_conditional_edges(
            "call_model",
            self._route_after_model,
            {
                "tools": "execute_tools",
                "continue": "call_model",
                "finish": END,
            },
        )
        g.add_conditional_edges(
            "execute_tools",
            self._route_after_tools,
            {
                "rollback": "rollback",
                "continue": "call_model",
            },
        )
        g.add_edge("rollback", END)
        return g.compile()

    async def run(
        self,
        history: ConversationState,
        *,
        max_turns: int,
        done_marker: Optional[str] = None,
    ) -> LoopOutcome:
        """Run turns until an answer, a cancellation or an error.

        Args:
            history: History to drive; the caller has already appended the
                input message.
            max_turns: Maximum number of model round-trips.
            done_marker: When set, a tool-free answer only ends the loop if
                it contains this literal text.

        Returns:
            ``LoopOutcome`` with the final answer, or a cancelled outcome.

        Raises:
            MaxTurnsExceededError: When the turn budget is exhausted.
            EmptyResponseError: When the model returns no text and no tool calls.
        """
        state: _LoopState = {
            "history": history,
            "max_turns": max_turns,
            "done_marker": done_marker,
            "turns": 0,
        }
        # Each turn visits at most two nodes, plus the rollback node.
        final = await self._graph.ainvoke(state, config={"recursion_limit": 2 * max_turns + 5})

        turns = int(final.get("turns", 0))
        if final.get("cancelled"):
            return LoopOutcome(status=LoopStatus.cancelled, answer=None, turns=turns)
        return LoopOutcome(status=LoopStatus.answered, answer=final.get("answer"), turns=turns)

    async def _node_call_model(self, state: _LoopState) -> _LoopState:
        """Ask the model for the next assistant message."""
        turns = state["turns"]
        if turns >= state["max_turns"]:
            raise MaxTurnsExceededError(state["max_turns"])

        history = state["history"]
        turn_start = len(history)
        message = await self._client.complete(history.messages, self._tools)
        history.append(message)

        text = message.text
        if text.strip():
            self._observer.on_message(text)

        state["turns"] = turns + 1
        state["turn_start"] = turn_start
        state["last_message"] = message
        state["answer"] = None
        state["cancelled"] = False

        if not message.tool_calls:
            if not text:
                raise EmptyResponseError()
            marker = state["done_marker"]
            if marker is None or marker in text:
                state["answer"] = text
            else:
                logger.debug(f"Done marker not found after turn {turns + 1}, continuing")
        return state

    async def _node_execute_tools(self, state: _LoopState) -> _LoopState:
        """Run every tool call of the turn, then commit or discard the batch."""
        message = state["last_message"]
        pending: List[Message] = []
        for call in message.tool_calls:
            args = call.decode_arguments()
            name = call.function.name
            if not await self._approver.approve(name, args):
                logger.info(f"Tool call '{name}' declined, rolling back turn")
                state["cancelled"] = True
                return state
            result = await self._execute(call, args)
            self._observer.on_tool_done(name, args, result)
            pending.append(Message.tool(call.id, result.output))

        state["history"].append_tool_results(pending)
        return state

    async def _node_rollback(self, state: _LoopState) -> _LoopState:
        """Restore the history to its length before the cancelled turn."""
        state["history"].truncate(state["turn_start"])
        return state

    async def _execute(self, call: ToolCall, args: Dict[str, Any]) -> ToolResult:
        if call.function.name == RUN_SHELL:
            command = args.get("command")
            outcome = await self._negotiator.run(command if isinstance(command, str) else "")
            logger.debug(f"run_shell finished via {outcome.path.value}: {outcome.result.status}")
            return outcome.result
        return await self._dispatcher.dispatch(call.function.name, args)

    def _route_after_model(self, state: _LoopState) -> str:
        """Route to tools/finish/continue after a model turn."""
        if state["last_message"].tool_calls:
            return "tools"
        if state.get("answer") is not None:
            return "finish"
        return "continue"

    def _route_after_tools(self, state: _LoopState) -> str:
        if state.get("cancelled"):
            return "rollback"
        return "continue"
