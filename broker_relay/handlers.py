"""
Dispatch of named relay operations to the account workflow
"""

import time
from typing import Any, Dict, Optional

from broker_relay.core.enums import ErrorKind, Operation
from broker_relay.core.exceptions import InvalidArgumentError, RelayError
from broker_relay.core.models import CallerIdentity
from broker_relay.utils.logger import OperationLogger
from broker_relay.workflow.account_workflow import AccountWorkflow, require_auth
from broker_relay.workflow.context import RelayContext

OPERATION_HANDLERS = {
    Operation.CONNECT: AccountWorkflow.connect,
    Operation.STATUS: AccountWorkflow.status,
    Operation.ACCOUNT_INFO: AccountWorkflow.account_info,
    Operation.METRICS: AccountWorkflow.metrics,
    Operation.TRADES: AccountWorkflow.trades,
    Operation.DAILY_GROWTH: AccountWorkflow.daily_growth,
    Operation.DISCONNECT: AccountWorkflow.disconnect,
}

INTERNAL_ERROR = {"kind": ErrorKind.INTERNAL.value, "message": "Internal error"}

op_logger = OperationLogger(__name__)


async def invoke(
    operation: str,
    payload: Optional[Dict[str, Any]],
    identity: Optional[CallerIdentity],
    context: RelayContext,
    workflow: Optional[AccountWorkflow] = None
) -> Dict[str, Any]:
    """
    Run one named operation and wrap its outcome.

    Returns ``{"result": ...}`` on success or ``{"error": {"kind", "message"}}``
    on failure. Identity is checked before anything else.
    """
    uid = identity.uid if identity else None
    started = time.monotonic()

    try:
        require_auth(identity)

        try:
            handler = OPERATION_HANDLERS[Operation(operation)]
        except ValueError:
            raise InvalidArgumentError(f"Unknown operation: {operation}")

        if payload is not None and not isinstance(payload, dict):
            raise InvalidArgumentError("Payload must be an object")

        op_logger.log_operation_start(operation, uid)
        result = await handler(workflow or AccountWorkflow(context), identity, payload or {})

    except RelayError as e:
        op_logger.log_operation_failure(operation, uid, e.kind.value, e.message)
        return {"error": e.to_dict()}
    except Exception as e:
        op_logger.log_error_with_context(e, f"{operation} crashed", uid)
        return {"error": dict(INTERNAL_ERROR)}

    op_logger.log_operation_result(operation, uid, time.monotonic() - started)
    return {"result": result}
