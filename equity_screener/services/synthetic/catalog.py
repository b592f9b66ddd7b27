"""
Static reference data for the synthetic market data generator.
"""

# (symbol, name, match score) for the searchable synthetic universe
SYMBOL_UNIVERSE: list[tuple[str, str, float]] = [
    ("AAPL", "Apple Inc", 0.9167),
    ("MSFT", "Microsoft Corporation", 0.8123),
    ("GOOGL", "Alphabet Inc", 0.7964),
    ("AMZN", "Amazon.com Inc", 0.7821),
    ("META", "Meta Platforms Inc", 0.7635),
    ("TSLA", "Tesla Inc", 0.7412),
    ("BRK.A", "Berkshire Hathaway Inc", 0.7257),
    ("JPM", "JPMorgan Chase & Co", 0.7103),
    ("V", "Visa Inc", 0.6982),
    ("NVDA", "NVIDIA Corporation", 0.6847),
    ("JNJ", "Johnson & Johnson", 0.6721),
    ("WMT", "Walmart Inc", 0.6605),
]

COMPANY_NAMES: dict[str, str] = {
    "AAPL": "Apple Inc.",
    "MSFT": "Microsoft Corporation",
    "GOOGL": "Alphabet Inc.",
    "AMZN": "Amazon.com Inc.",
    "META": "Meta Platforms Inc.",
    "TSLA": "Tesla, Inc.",
    "NVDA": "NVIDIA Corporation",
    "JPM": "JPMorgan Chase & Co.",
    "V": "Visa Inc.",
    "JNJ": "Johnson & Johnson",
    "WMT": "Walmart Inc.",
}

COMPANY_DESCRIPTIONS: dict[str, str] = {
    "AAPL": "Apple Inc. designs, manufactures, and markets smartphones, personal computers, tablets, wearables, and accessories worldwide.",
    "MSFT": "Microsoft Corporation develops, licenses, and supports software, services, devices, and solutions worldwide.",
    "GOOGL": "Alphabet Inc. provides various products and platforms in the United States, Europe, the Middle East, Africa, the Asia-Pacific, Canada, and Latin America.",
    "AMZN": "Amazon.com, Inc. engages in the retail sale of consumer products and subscriptions through online and physical stores in North America and internationally.",
    "META": "Meta Platforms, Inc. develops products that enable people to connect and share with friends and family through mobile devices, personal computers, and virtual reality headsets.",
    "TSLA": "Tesla, Inc. designs, develops, manufactures, leases, and sells electric vehicles, and energy generation and storage systems.",
    "NVDA": "NVIDIA Corporation provides graphics, and compute and networking solutions in the United States, Taiwan, China, and internationally.",
    "JPM": "JPMorgan Chase & Co. operates as a financial services company worldwide.",
    "V": "Visa Inc. operates as a payments technology company worldwide.",
    "JNJ": "Johnson & Johnson researches, develops, manufactures, and sells various products in the healthcare field worldwide.",
    "WMT": "Walmart Inc. engages in the operation of retail, wholesale, and other units worldwide.",
}

SECTORS = [
    "Technology",
    "Healthcare",
    "Consumer Cyclical",
    "Financial Services",
    "Communication Services",
    "Industrial",
    "Energy",
]

EXCHANGES = ["NASDAQ", "NYSE", "AMEX", "LSE", "TSX"]

NEWS_SOURCES = [
    "Financial Times",
    "Bloomberg",
    "The Wall Street Journal",
    "CNBC",
    "Reuters",
    "MarketWatch",
    "Barron's",
    "Investor's Business Daily",
]

# (title, summary) templates; {name}, {short} and {symbol} are filled per company
COMPANY_NEWS_TEMPLATES: list[tuple[str, str]] = [
    (
        "{name} Reports Strong Quarterly Earnings, Beats Expectations",
        "{name} released its quarterly earnings report today, exceeding analyst expectations with revenue growth of 15% year-over-year.",
    ),
    (
        "{short} Announces New Product Line, Shares Rise",
        "{name} revealed its new product lineup today at an industry conference, leading to a 3% increase in share price.",
    ),
    (
        "Investors Optimistic About {short}'s Growth Strategy",
        "Market analysts express confidence in {name}'s long-term growth strategy following recent business developments.",
    ),
    (
        "{name} Expands into New Markets",
        "{name} announced plans to expand operations into emerging markets, with a focus on Asia and South America.",
    ),
    (
        "{short} CEO Discusses Future Vision in Interview",
        "In a recent interview, the CEO of {name} outlined the company's vision for the next five years.",
    ),
    (
        "Analysts Upgrade {symbol} Stock Rating",
        "Several major financial institutions have upgraded their rating for {name}, citing strong fundamentals.",
    ),
    (
        "{name} Partners with Tech Giant for New Initiative",
        "{name} announced a strategic partnership that aims to accelerate digital transformation.",
    ),
    (
        "{short} Addresses Supply Chain Challenges",
        "{name} executives detailed their strategy to mitigate ongoing supply chain disruptions.",
    ),
    (
        "{name} Increases Dividend by 10%",
        "The board of directors of {name} approved a 10% increase in the quarterly dividend.",
    ),
    (
        "Market Watch: {symbol} Technical Analysis Shows Bullish Trend",
        "Technical analysts point to several indicators suggesting a positive outlook for {name}'s stock.",
    ),
]

MARKET_NEWS_TEMPLATES: list[tuple[str, str]] = [
    (
        "Federal Reserve Signals Potential Rate Changes",
        "The Federal Reserve indicated it might adjust interest rates in response to recent economic data.",
    ),
    (
        "S&P 500 Reaches New All-Time High",
        "The S&P 500 index surged to a record high, driven by strong performance in technology and healthcare.",
    ),
    (
        "Oil Prices Fluctuate Amid Global Supply Concerns",
        "Crude oil futures experienced volatility as traders assessed supply disruptions.",
    ),
    (
        "Treasury Yields Rise on Economic Outlook",
        "Government bond yields climbed as investors reassess inflation expectations.",
    ),
    (
        "Market Volatility Increases as Earnings Season Begins",
        "Volatility metrics have risen as companies start to report quarterly earnings.",
    ),
    (
        "Tech Sector Leads Market Rally",
        "Technology stocks powered a broad market rally, with semiconductor and software companies posting gains.",
    ),
    (
        "GDP Growth Exceeds Expectations in Q2",
        "The economy grew faster than anticipated in the second quarter, according to preliminary data.",
    ),
    (
        "Retail Sales Data Shows Consumer Resilience",
        "Monthly retail sales figures came in stronger than expected.",
    ),
    (
        "Gold Prices Reach Six-Month High",
        "Gold futures climbed to their highest level in six months as investors seek safe-haven assets.",
    ),
    (
        "Housing Market Shows Signs of Cooling",
        "New home sales and mortgage applications declined last month.",
    ),
    (
        "Dollar Strengthens Against Major Currencies",
        "The U.S. dollar index rose against a basket of major currencies.",
    ),
    (
        "Inflation Data Comes in Below Expectations",
        "The latest Consumer Price Index report showed inflation easing slightly.",
    ),
    (
        "Market Analysts Divided on Year-End Outlook",
        "Wall Street strategists are showing unusual divergence in their year-end forecasts.",
    ),
    (
        "Small-Cap Stocks Outperform Broader Market",
        "Small-capitalization companies have outpaced their larger counterparts over the past month.",
    ),
    (
        "Global Markets React to Central Bank Decisions",
        "International stock markets showed mixed reactions to policy announcements from major central banks.",
    ),
]
