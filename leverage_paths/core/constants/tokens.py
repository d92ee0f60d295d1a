WBTC = "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599"
WBTC_DECIMALS = 8

WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
