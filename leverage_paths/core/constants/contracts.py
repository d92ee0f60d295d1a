from leverage_paths.core.constants.chains import CHAIN_ID_ETHEREUM

LEVERAGE_REGISTRY_URLS: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "https://smart-contract-backend-config.s3.amazonaws.com/abis/tenderly_fork_leverage_abis.json",
}

UNISWAP_ROUTING_API_URL = "https://api.uniswap.org/v2"
