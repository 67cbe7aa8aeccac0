"""Aptos coin types, protocol entry functions and default endpoints."""

from typing import Optional, TypedDict


class ProtocolFunctions(TypedDict):
    """Entry functions used by a protocol adapter for mutating operations."""

    stake: Optional[str]
    unstake: Optional[str]
    deposit: Optional[str]


APT_COIN_TYPE = "0x1::aptos_coin::AptosCoin"
NATIVE_TOKEN = "APT"

# Aptos coins use 8 fractional digits on-chain
ON_CHAIN_DECIMALS = 8

# symbol -> Move coin type
TOKEN_COIN_TYPES: dict[str, str] = {
    "APT": APT_COIN_TYPE,
    "USDT": "0xf22bede237a07e121b56d91a491eb7bcdfd1f5907926a9e58338f964a01b17fa::asset::USDT",
    "USDC": "0xf22bede237a07e121b56d91a491eb7bcdfd1f5907926a9e58338f964a01b17fa::asset::USDC",
    "stAPT": "0x111ae3e5bc816a5e63c2da97d0aa3886519e0cd5e4b046659fa35796bd11542a::stapt_token::StakedApt",
    "amAPT": "0x111ae3e5bc816a5e63c2da97d0aa3886519e0cd5e4b046659fa35796bd11542a::amapt_token::AmnisApt",
    "thAPT": "0xfaf4e633ae9eb31366c9ca24214231760926576c7b625313b3688b5e900731f6::staking::ThalaAPT",
}

# symbol -> CoinGecko id
TOKEN_PRICE_IDS: dict[str, str] = {
    "APT": "aptos",
    "USDT": "tether",
    "USDC": "usd-coin",
    "stAPT": "amnis-staked-aptos-coin",
    "amAPT": "amnis-aptos",
    "thAPT": "thala-apt",
}

DEFAULT_SUPPORTED_TOKENS = ["USDT", "USDC", "stAPT", "thAPT", "eAPT"]

DEFAULT_MAINNET_NODE_URL = "https://fullnode.mainnet.aptoslabs.com/v1"
DEFAULT_TESTNET_NODE_URL = "https://fullnode.testnet.aptoslabs.com/v1"

DEFAULT_PRICE_API_URL = "https://api.coingecko.com/api/v3/simple/price"

JOULE_MARKET_URL = "https://price-api.joule.finance/api/market"
THALA_STATS_URL = "https://app.thala.fi/stats"
AMNIS_STATS_URL = "https://api.amnis.finance/v1/staking/stats"

JOULE_CONTRACT = "0x2fe576faa841347a9b1b32c869685deb75a15e3f62dfe37cbd6d52cc403a16f6"
THALA_LSD_CONTRACT = "0xfaf4e633ae9eb31366c9ca24214231760926576c7b625313b3688b5e900731f6"
AMNIS_CONTRACT = "0x111ae3e5bc816a5e63c2da97d0aa3886519e0cd5e4b046659fa35796bd11542a"
ECHO_CONTRACT = "0xa0281660ff6ca6c1b68b55fcb9b213c2276f90ad007ad27fd003cf2f3478e96e"

PROTOCOL_FUNCTIONS: dict[str, ProtocolFunctions] = {
    "Joule": {
        "stake": None,
        "unstake": None,
        "deposit": f"{JOULE_CONTRACT}::pool::lend",
    },
    "Thala": {
        "stake": f"{THALA_LSD_CONTRACT}::scripts::stake_APT_and_thAPT",
        "unstake": f"{THALA_LSD_CONTRACT}::scripts::unstake_thAPT",
        "deposit": None,
    },
    "Amnis": {
        "stake": f"{AMNIS_CONTRACT}::router::deposit_and_stake_entry",
        "unstake": f"{AMNIS_CONTRACT}::router::unstake_entry",
        "deposit": None,
    },
    "Echo": {
        "stake": f"{ECHO_CONTRACT}::lsdmanage::stake",
        "unstake": f"{ECHO_CONTRACT}::lsdmanage::unlock",
        "deposit": None,
    },
}

# Joule lending position used for deposits
JOULE_POSITION_NAME = "1234"

# maxDeposit is capped at this share of the pool's TVL
MAX_DEPOSIT_TVL_FRACTION = 0.1
DEFAULT_MIN_DEPOSIT = 0.1

LOW_TVL_FLOOR = 1_000_000
HIGH_APY_THRESHOLD = 50.0

DAYS_PER_YEAR = 365

MARKET_CONTEXT_UNAVAILABLE = "Market context unavailable"
RECOMMENDATION_UNAVAILABLE = "Unable to generate AI recommendation at this time."
DEFAULT_MARKET_CONDITIONS = "Normal market conditions"
