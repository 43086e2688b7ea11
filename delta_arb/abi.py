"""
Minimal contract ABIs for the router, LP pairs, market and tokens.
"""


def _fn(name, inputs=(), outputs=(), mutability="view"):
    return {
        "type": "function",
        "name": name,
        "stateMutability": mutability,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
    }


ERC20_ABI = [
    _fn("balanceOf", [("owner", "address")], [("", "uint256")]),
    _fn("allowance", [("owner", "address"), ("spender", "address")], [("", "uint256")]),
    _fn(
        "approve",
        [("spender", "address"), ("amount", "uint256")],
        [("", "bool")],
        "nonpayable",
    ),
]

WRAPPED_NATIVE_ABI = ERC20_ABI + [
    _fn("deposit", mutability="payable"),
    _fn("withdraw", [("amount", "uint256")], mutability="nonpayable"),
]

PAIR_ABI = [
    _fn("token0", outputs=[("", "address")]),
    _fn("token1", outputs=[("", "address")]),
    _fn(
        "getReserves",
        outputs=[
            ("reserve0", "uint112"),
            ("reserve1", "uint112"),
            ("blockTimestampLast", "uint32"),
        ],
    ),
]

ROUTER_ABI = [
    _fn(
        "getAmountsOut",
        [("amountIn", "uint256"), ("path", "address[]")],
        [("amounts", "uint256[]")],
    ),
    _fn(
        "swapTokensForExactTokens",
        [
            ("amountOut", "uint256"),
            ("amountInMax", "uint256"),
            ("path", "address[]"),
            ("to", "address"),
            ("deadline", "uint256"),
        ],
        [("amounts", "uint256[]")],
        "nonpayable",
    ),
]

MARKET_ABI = [
    _fn(
        "getMarketState",
        outputs=[
            ("longLiquidity", "uint256"),
            ("shortLiquidity", "uint256"),
            ("longTotalSupply", "uint256"),
            ("shortTotalSupply", "uint256"),
            ("price", "uint256"),
        ],
    ),
    _fn("depositLong", [("amount", "uint256")], mutability="nonpayable"),
    _fn("depositShort", [("amount", "uint256")], mutability="nonpayable"),
]
