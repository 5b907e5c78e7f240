"""Static crypto / DeFi vocabulary used by the translator fallback.

Keys are lower-case and unique; lookups are case-insensitive. The table is
built once at import and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from cryptoguard.models.common import RiskLevel


@dataclass(frozen=True)
class DictionaryEntry:
    term: str
    simple_definition: str
    technical_definition: str
    category: str
    risk_level: RiskLevel


LOW, MEDIUM, HIGH = RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH

# (term, category, risk, simple definition, technical definition)
_ENTRIES: Tuple[Tuple[str, str, RiskLevel, str, str], ...] = (
    # Basics
    ("crypto", "Basics", LOW,
     "Short for cryptocurrency: money that only exists digitally.",
     "Cryptocurrency - digital or virtual currency secured by cryptography."),
    ("cryptocurrency", "Basics", LOW,
     "Digital money that is protected by maths instead of a bank.",
     "Digital or virtual currency secured by cryptography and usually recorded on a blockchain."),
    ("bitcoin", "Basics", LOW,
     "The first and best-known cryptocurrency.",
     "The first decentralized cryptocurrency, created by Satoshi Nakamoto, secured by proof of work."),
    ("ethereum", "Basics", LOW,
     "A blockchain where people run programs, and whose coin is called Ether.",
     "A decentralized platform that runs smart contracts and hosts the Ether cryptocurrency."),
    ("blockchain", "Technical", LOW,
     "A shared record book that everyone can check but nobody can secretly edit.",
     "A distributed ledger that maintains a continuously growing, append-only list of linked records."),
    ("wallet", "Security", LOW,
     "An app or device that holds the keys to your crypto.",
     "A tool that manages private keys and lets users store, send and receive cryptocurrencies."),
    ("address", "Basics", LOW,
     "Like an account number that people use to send you crypto.",
     "A unique identifier derived from a public key, used to send and receive transactions."),
    ("private key", "Security", MEDIUM,
     "The secret password that controls your crypto; whoever has it owns the funds.",
     "A secret number that authorizes spending from a wallet by producing digital signatures."),
    ("public key", "Security", LOW,
     "A code you can safely share so others can send you funds or check your signatures.",
     "A cryptographic key derived from the private key, shared publicly to verify signatures and receive funds."),
    # DeFi
    ("defi", "DeFi", MEDIUM,
     "Banking-style services run by code on a blockchain instead of by a bank.",
     "Decentralized Finance - financial services built on smart contracts without traditional intermediaries."),
    ("yield farming", "DeFi", MEDIUM,
     "Putting your crypto to work in DeFi apps to earn extra tokens as rewards.",
     "A DeFi strategy where users supply liquidity or stake tokens to earn protocol rewards in additional cryptocurrency."),
    ("liquidity pool", "DeFi", MEDIUM,
     "A shared pot of two tokens that people trade against.",
     "A pool of tokens locked in a smart contract used to facilitate trading and lending."),
    ("liquidity provider", "DeFi", MEDIUM,
     "Someone who adds tokens to a trading pot and earns a cut of the fees.",
     "A user who deposits tokens into liquidity pools in exchange for LP tokens, trading fees and rewards."),
    ("automated market maker", "DeFi", MEDIUM,
     "A trading robot that sets prices with a formula instead of matching buyers and sellers.",
     "AMM - a decentralized exchange design that prices assets with a bonding curve such as x * y = k."),
    ("amm", "DeFi", MEDIUM,
     "Automated Market Maker: a formula-driven exchange with no order book.",
     "Automated Market Maker - a protocol that uses algorithms to price assets and facilitate trading from pooled liquidity."),
    ("smart contract", "Technical", MEDIUM,
     "A program on the blockchain that runs exactly as written, with nobody in charge.",
     "Self-executing code deployed on a blockchain whose terms are enforced by the network."),
    ("dapp", "Technical", LOW,
     "An app whose back end runs on a blockchain.",
     "Decentralized Application - an application whose logic runs on smart contracts on a decentralized network."),
    ("dao", "Governance", MEDIUM,
     "An online group that makes decisions by token-holder votes recorded on a blockchain.",
     "Decentralized Autonomous Organization - an organization governed by smart contracts and token holder votes."),
    ("governance token", "Governance", MEDIUM,
     "A token that gives you a vote on how a project is run.",
     "A token that grants holders voting rights over protocol parameters, upgrades and treasury spending."),
    ("staking", "DeFi", LOW,
     "Locking up your coins to help run a network and earning rewards for it.",
     "Holding and locking cryptocurrency to secure a proof-of-stake network or protocol in exchange for rewards."),
    ("slippage", "Trading", LOW,
     "The gap between the price you expected and the price you actually got.",
     "The difference between the expected and executed price of a trade caused by price impact or market movement."),
    ("impermanent loss", "DeFi", MEDIUM,
     "Money a liquidity provider can lose compared with just holding, when prices move apart.",
     "The temporary loss experienced by liquidity providers when the prices of pooled tokens diverge."),
    ("flash loan", "DeFi", HIGH,
     "A huge loan that has to be borrowed and paid back in the same instant; often used in attacks.",
     "An uncollateralized loan that must be borrowed and repaid within a single atomic transaction."),
    ("oracle", "Technical", MEDIUM,
     "A service that feeds real-world data, like prices, into smart contracts.",
     "A service that delivers off-chain data to on-chain smart contracts."),
    ("bridge", "Technical", HIGH,
     "A tool that moves tokens from one blockchain to another.",
     "A protocol that locks assets on one chain and mints or releases representations on another chain."),
    ("cross-chain", "Technical", MEDIUM,
     "Working across more than one blockchain.",
     "Technology enabling interaction and asset transfer between different blockchain networks."),
    # Trading
    ("dex", "Trading", MEDIUM,
     "A crypto exchange run by smart contracts instead of a company.",
     "Decentralized Exchange - a peer-to-peer marketplace where trades settle on-chain through smart contracts."),
    ("cex", "Trading", LOW,
     "A crypto exchange run by a company, like a traditional broker.",
     "Centralized Exchange - a custodial cryptocurrency exchange operated by a company."),
    ("orderbook", "Trading", LOW,
     "The list of everyone's buy and sell offers for an asset.",
     "A list of outstanding buy and sell orders for an asset, sorted by price level."),
    ("market maker", "Trading", LOW,
     "A trader who keeps buy and sell offers open so others can always trade.",
     "An entity that provides liquidity by continuously quoting buy and sell orders."),
    ("arbitrage", "Trading", MEDIUM,
     "Buying something where it is cheap and selling it where it is expensive at the same time.",
     "Simultaneously buying and selling identical assets in different markets to profit from price differences."),
    ("hodl", "Trading", LOW,
     "Holding on to your crypto for the long term instead of trading it.",
     "A long-term holding strategy, originating from a misspelling of 'hold'."),
    ("fomo", "Trading", MEDIUM,
     "Fear of missing out: buying in a rush because prices are rising.",
     "Fear Of Missing Out - the anxiety of missing potential profits that drives impulsive buying."),
    ("fud", "Trading", MEDIUM,
     "Scary rumours spread to push prices down.",
     "Fear, Uncertainty, and Doubt - negative sentiment spread to influence market prices."),
    ("pump and dump", "Security", HIGH,
     "A scam where a price is hyped up so insiders can sell at the top.",
     "A fraudulent scheme that inflates an asset's price through hype before insiders sell for profit."),
    # Technical
    ("gas", "Technical", LOW,
     "The fee you pay the network to process your transaction.",
     "The unit measuring computation required to execute transactions and smart contracts on EVM chains such as BNB Smart Chain."),
    ("gas limit", "Technical", LOW,
     "The most gas you allow a transaction to use.",
     "The maximum amount of gas a sender is willing to spend on a transaction."),
    ("gas price", "Technical", LOW,
     "How much you pay for each unit of gas.",
     "The amount of native currency paid per unit of gas, usually quoted in gwei."),
    ("nonce", "Technical", LOW,
     "A counter that keeps each of your transactions in order.",
     "A number used once; on EVM chains, the per-account transaction counter."),
    ("consensus", "Technical", LOW,
     "How all the computers in a network agree on what happened.",
     "The process by which network participants agree on the canonical state of the blockchain."),
    ("mining", "Technical", LOW,
     "Using computers to process transactions and earn new coins.",
     "Validating transactions and producing blocks in a proof-of-work system in exchange for block rewards."),
    ("proof of work", "Technical", LOW,
     "A system where computers race to solve puzzles to add the next block.",
     "A consensus mechanism where miners expend computation to find a block hash below a target."),
    ("proof of stake", "Technical", LOW,
     "A system where people who lock up coins take turns adding blocks.",
     "A consensus mechanism where validators are selected in proportion to their staked collateral."),
    ("validator", "Technical", LOW,
     "A participant that checks and adds transactions in a proof-of-stake network.",
     "A node that proposes and attests to blocks in a proof-of-stake system, bonded by a stake."),
    ("node", "Technical", LOW,
     "A computer that keeps a copy of the blockchain.",
     "A computer that maintains a copy of the blockchain and relays and validates transactions."),
    ("fork", "Technical", LOW,
     "A change to a blockchain's rules that can split it in two.",
     "A change to protocol rules that creates a divergent version of the chain."),
    ("hard fork", "Technical", MEDIUM,
     "A rule change that old software cannot follow, splitting the chain permanently.",
     "A non-backward-compatible protocol change producing a permanent divergence from the previous chain."),
    ("soft fork", "Technical", LOW,
     "A rule change that old software can still follow.",
     "A backward-compatible protocol upgrade that tightens the rule set."),
    # Token standards
    ("erc-20", "Technical", LOW,
     "The standard recipe for making a regular token on Ethereum.",
     "A technical standard defining the interface for fungible tokens on Ethereum."),
    ("bep-20", "Technical", LOW,
     "The standard recipe for making a regular token on BNB Smart Chain.",
     "The BNB Smart Chain token standard for fungible tokens, analogous to ERC-20."),
    ("erc-721", "Technical", LOW,
     "The standard for one-of-a-kind tokens (NFTs) on Ethereum.",
     "A technical standard for non-fungible tokens on Ethereum."),
    ("erc-1155", "Technical", LOW,
     "A standard that lets one contract hold both regular tokens and NFTs.",
     "A multi-token standard supporting both fungible and non-fungible tokens in one contract."),
    ("nft", "Gaming", MEDIUM,
     "A one-of-a-kind digital item, like a collectible card, recorded on a blockchain.",
     "Non-Fungible Token - a unique digital asset whose ownership is tracked on-chain."),
    ("fungible", "Basics", LOW,
     "Swappable: every unit is the same as every other, like dollar bills.",
     "Interchangeable units where each is identical to every other unit."),
    ("non-fungible", "Basics", LOW,
     "Unique: each item is different and cannot be swapped one-for-one.",
     "Unique tokens that cannot be exchanged on a one-to-one basis."),
    # Scaling
    ("layer 2", "Scaling", MEDIUM,
     "An add-on network that makes a blockchain faster and cheaper.",
     "Scaling solutions built on top of a base chain that inherit its security while improving throughput and cost."),
    ("rollup", "Scaling", MEDIUM,
     "A way to bundle many transactions into one to save fees.",
     "A layer 2 scaling solution that executes transactions off-chain and posts compressed data to the base chain."),
    ("optimistic rollup", "Scaling", MEDIUM,
     "A rollup that trusts transactions unless someone proves they are wrong.",
     "A rollup that assumes batches are valid and relies on fraud proofs during a challenge window."),
    ("zk-rollup", "Scaling", MEDIUM,
     "A rollup that uses maths proofs to show every batch is correct.",
     "Zero-Knowledge Rollup - a layer 2 that posts validity proofs for each batch to the base chain."),
    ("sidechain", "Scaling", MEDIUM,
     "A separate blockchain running alongside a main one.",
     "An independent blockchain with its own consensus, connected to a main chain by a bridge."),
    ("state channel", "Scaling", LOW,
     "A private tab between two people that only settles on-chain at the end.",
     "A two-party channel that exchanges signed state updates off-chain and settles the final state on-chain."),
    # Yield and rewards
    ("apy", "DeFi", LOW,
     "How much you would earn in a year, counting interest on interest.",
     "Annual Percentage Yield - the annualized rate of return including compounding."),
    ("apr", "DeFi", LOW,
     "How much you would earn in a year, not counting interest on interest.",
     "Annual Percentage Rate - the yearly interest rate without compounding."),
    ("compound interest", "DeFi", LOW,
     "Earning interest on your interest as well as on your original amount.",
     "Interest calculated on both the principal and previously accumulated interest."),
    ("rewards", "DeFi", LOW,
     "Tokens you earn for helping a network or protocol.",
     "Tokens distributed for participating in network activities such as staking or providing liquidity."),
    ("farming", "DeFi", MEDIUM,
     "Earning crypto rewards by lending or locking your tokens in DeFi.",
     "The practice of earning cryptocurrency rewards by providing liquidity or staking tokens."),
    ("pool", "DeFi", MEDIUM,
     "A shared pot of crypto managed by a smart contract.",
     "A collection of funds locked in a smart contract for trading, lending or staking."),
    # Security
    ("multi-signature", "Security", LOW,
     "A wallet that needs several people to approve each payment.",
     "A wallet scheme requiring M-of-N private key signatures to authorize a transaction."),
    ("cold storage", "Security", LOW,
     "Keeping your crypto keys offline, away from hackers.",
     "Storing private keys on devices or media never connected to the internet."),
    ("hot wallet", "Security", MEDIUM,
     "A wallet connected to the internet: convenient but easier to attack.",
     "A cryptocurrency wallet whose keys reside on an internet-connected device."),
    ("seed phrase", "Security", HIGH,
     "The list of backup words that can restore your wallet; never share it.",
     "A mnemonic word sequence (BIP-39) from which a wallet's private keys are derived."),
    ("rug pull", "Security", HIGH,
     "A scam where the team behind a token runs off with investors' money.",
     "An exit scam where developers withdraw liquidity or abandon a project and take investor funds."),
    ("smart contract audit", "Security", LOW,
     "A professional safety check of a smart contract's code.",
     "A systematic review of smart contract code for security vulnerabilities and logic errors."),
    ("honeypot", "Security", HIGH,
     "A trap token you can buy but never sell.",
     "A smart contract designed to accept funds while preventing withdrawals or sales."),
    ("phishing", "Security", HIGH,
     "Tricking you into giving away your keys or signing a bad transaction.",
     "Social engineering that impersonates trusted services to steal credentials or approvals."),
    ("token approval", "Security", MEDIUM,
     "Permission you give a contract to move your tokens.",
     "An ERC-20/BEP-20 allowance granting a spender contract rights to transfer the holder's tokens."),
    # Market
    ("market cap", "Market", LOW,
     "The total value of all the coins in circulation.",
     "Market Capitalization - circulating supply multiplied by current price."),
    ("total value locked", "Market", LOW,
     "How much money is deposited in a DeFi app.",
     "TVL - the total value of assets deposited in a DeFi protocol's smart contracts."),
    ("tvl", "Market", LOW,
     "Total Value Locked: how much money sits in a DeFi app.",
     "Total Value Locked - the total amount of assets locked in DeFi protocols."),
    ("liquidity", "Market", LOW,
     "How easily something can be bought or sold without moving its price.",
     "The ease with which an asset can be traded without significant price impact."),
    ("volume", "Market", LOW,
     "How much of a coin was traded over a period.",
     "The total amount of an asset traded over a specific period."),
    ("whale", "Market", MEDIUM,
     "Someone holding so much crypto that their trades can move the price.",
     "An individual or entity holding a large enough position to influence market prices."),
    ("bull market", "Market", LOW,
     "A period when prices keep going up.",
     "A sustained period of rising prices and positive sentiment."),
    ("bear market", "Market", LOW,
     "A period when prices keep going down.",
     "A sustained period of falling prices and negative sentiment."),
    ("altcoin", "Market", MEDIUM,
     "Any cryptocurrency other than Bitcoin.",
     "Any cryptocurrency other than Bitcoin."),
    ("stablecoin", "Market", LOW,
     "A crypto coin designed to stay worth the same, usually one dollar.",
     "A cryptocurrency designed to maintain a stable value relative to a reference asset such as USD."),
    ("bnb", "Basics", LOW,
     "The native coin of BNB Chain, used to pay fees.",
     "The native asset of BNB Smart Chain, used for gas fees and staking."),
    ("pancakeswap", "DeFi", MEDIUM,
     "The most popular trading app on BNB Smart Chain.",
     "An AMM-based decentralized exchange on BNB Smart Chain."),
    # Governance
    ("proposal", "Governance", LOW,
     "A suggested change that token holders vote on.",
     "A suggested change or addition to a protocol submitted for community voting."),
    ("voting power", "Governance", LOW,
     "How much say you have in a vote, usually based on tokens held.",
     "The weight of a holder's vote in governance, typically proportional to tokens held or delegated."),
    ("quorum", "Governance", LOW,
     "The minimum number of votes needed for a decision to count.",
     "The minimum participation required for a governance proposal to be valid."),
    ("treasury", "Governance", MEDIUM,
     "The shared money a project or DAO controls.",
     "A pool of funds controlled by a DAO or protocol for development and operations."),
    ("tokenomics", "Governance", LOW,
     "How a token is created, shared out and used.",
     "The economic model, supply schedule and distribution mechanism of a cryptocurrency token."),
    # Gaming
    ("gamefi", "Gaming", MEDIUM,
     "Games where you can earn crypto or NFTs.",
     "The combination of blockchain gaming and DeFi mechanics such as token rewards and NFT items."),
    ("play-to-earn", "Gaming", MEDIUM,
     "Games that pay players in crypto for playing.",
     "A game model that rewards players with tokens or NFTs with real market value."),
    ("metaverse", "Gaming", MEDIUM,
     "Shared virtual worlds where digital items can be owned as NFTs.",
     "Persistent shared virtual environments whose assets and land are tokenized on-chain."),
)

CRYPTO_DICTIONARY: Mapping[str, DictionaryEntry] = MappingProxyType(
    {
        term: DictionaryEntry(
            term=term,
            simple_definition=simple,
            technical_definition=technical,
            category=category,
            risk_level=risk,
        )
        for term, category, risk, simple, technical in _ENTRIES
    }
)

CATEGORIES: Tuple[str, ...] = tuple(sorted({entry.category for entry in CRYPTO_DICTIONARY.values()}))


def lookup(term: str) -> Optional[DictionaryEntry]:
    """Case-insensitive exact lookup."""
    return CRYPTO_DICTIONARY.get(term.strip().lower())


def available_terms(limit: Optional[int] = None) -> List[str]:
    terms = list(CRYPTO_DICTIONARY.keys())
    return terms[:limit] if limit is not None else terms


def entries_by_category() -> Dict[str, List[DictionaryEntry]]:
    grouped: Dict[str, List[DictionaryEntry]] = {}
    for entry in CRYPTO_DICTIONARY.values():
        grouped.setdefault(entry.category, []).append(entry)
    return grouped
