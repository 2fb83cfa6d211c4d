"""Route steps — Protocol-based, no inheritance required.

A middleware step is any callable matching:
    async def step(context: StepContext, next: Next) -> Outcome

Built-in steps:
    auth_step -- Redirect to a login route unless authenticated
    role_step -- Redirect unless the user holds a role
    data_step -- Fetch data into the attempt's shared scratch space
    logging_step -- Log route access
"""

from wayfinder.middleware.builtin import auth_step, data_step, logging_step, role_step
from wayfinder.middleware.chain import ChainExecutor, run_route_steps
from wayfinder.middleware.protocol import (
    BLOCK,
    CONTINUE,
    Block,
    Continue,
    Guard,
    Next,
    Outcome,
    Redirect,
    Step,
    StepContext,
)

__all__ = [
    "BLOCK",
    "CONTINUE",
    "Block",
    "ChainExecutor",
    "Continue",
    "Guard",
    "Next",
    "Outcome",
    "Redirect",
    "Step",
    "StepContext",
    "auth_step",
    "data_step",
    "logging_step",
    "role_step",
    "run_route_steps",
]
