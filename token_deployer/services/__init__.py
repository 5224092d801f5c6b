"""HTTP service exposing an :class:`OrchestrationSession` to a presentation layer.

The service offers the session state and the operator's intents as a small
JSON API::

    GET /session

    200 OK

        {
            "fee_tier": "standard",
            "fee_snapshot": {"fast": {"max_fee": "50", "max_priority_fee": "30"}, ...},
            "fee_error": null,
            "deploy": {"status": "succeeded", "result": {...}, "error": null, ...},
            "mint": {"status": "idle", "result": null, "error": null, ...},
            "deploying": false,
            "minting": false,
            "last_error": null
        }

Changing the fee tier, deploying the contract and minting tokens look like this::

    POST /session/tier      {"tier": "fast"}
    POST /session/deploy    {"owner_address": <str, optional>}
    POST /session/mint      {"amount": <int>, "recipient": <str, optional>}

Deploy and mint answer `202 Accepted` with the new state, since the action
continues in the background. Starting an action that is already in flight
answers `409 Conflict`.

Additionally, `/status` and `/metrics` (prometheus) are available.
"""
