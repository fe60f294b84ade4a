"""
backend/poolsettle/chain/abi.py

Purpose:
    Minimal GamePool ABI for the settlement bot (reads + sendRequest /
    retryRequest) and the revert error schema used to decode failed calls.
"""

POOL_VIEW_FIELDS = (
    "league",
    "teamAName",
    "teamBName",
    "teamACode",
    "teamBCode",
    "isLocked",
    "requestSent",
    "winningTeam",
    "lockTime",
)


def _view(name: str, output_type: str) -> dict:
    return {
        "type": "function",
        "stateMutability": "view",
        "name": name,
        "inputs": [],
        "outputs": [{"name": "", "type": output_type}],
    }


def _request(name: str) -> dict:
    return {
        "type": "function",
        "stateMutability": "nonpayable",
        "name": name,
        "inputs": [
            {"name": "args", "type": "string[]"},
            {"name": "subscriptionId", "type": "uint64"},
            {"name": "gasLimit", "type": "uint32"},
            {"name": "donHostedSecretsSlotID", "type": "uint8"},
            {"name": "donHostedSecretsVersion", "type": "uint64"},
            {"name": "donID", "type": "bytes32"},
        ],
        "outputs": [],
    }


POOL_ABI = [
    _view("league", "string"),
    _view("teamAName", "string"),
    _view("teamBName", "string"),
    _view("teamACode", "string"),
    _view("teamBCode", "string"),
    _view("isLocked", "bool"),
    _view("requestSent", "bool"),
    _view("winningTeam", "uint8"),
    _view("lockTime", "uint256"),
    _request("sendRequest"),
    _request("retryRequest"),
]

# Solidity builtins, OpenZeppelin Ownable and Chainlink Functions
# (FunctionsClient / FunctionsRequest / FunctionsRouter / subscriptions).
KNOWN_ERROR_SIGNATURES = (
    "Error(string)",
    "Panic(uint256)",
    "OwnableUnauthorizedAccount(address)",
    "OwnableInvalidOwner(address)",
    "UnexpectedRequestID(bytes32)",
    "OnlyRouterCanFulfill()",
    "EmptySource()",
    "EmptySecrets()",
    "EmptyArgs()",
    "NoInlineSecrets()",
    "InvalidSubscription()",
    "InsufficientBalance(uint96)",
    "InvalidConsumer()",
    "ConsumerRequestsInFlight()",
    "InvalidCalldata()",
    "MustBeSubscriptionOwner()",
    "TimeoutNotExceeded()",
    "RouteNotFound(bytes32)",
    "GasLimitTooBig(uint32)",
    "InvalidGasFlagValue(uint8)",
    "DuplicateRequestId(bytes32)",
    "SenderMustAcceptTermsOfService(address)",
    "OnlyCallableFromLink()",
)
