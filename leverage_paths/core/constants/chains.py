CHAIN_ID_ETHEREUM = 1
CHAIN_ID_LOCAL_FORK = 1337
