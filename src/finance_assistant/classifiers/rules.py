from finance_assistant.models import DEFAULT_CATEGORY

# Order is precedence: a description matching keywords of several categories
# gets the earliest one ("gas station grocery" is Food & Dining, "subway" is
# Food & Dining rather than Transportation, "home depot" is Shopping rather
# than Housing, "netflix" is Entertainment rather than Subscriptions).
# Short tokens are written as phrases where a bare word would match inside
# unrelated words ("bus" in "business", "gas" in "Vegas").
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "Food & Dining",
        (
            "restaurant", "cafe", "food", "grocer", "pizza", "coffee", "lunch",
            "dinner", "mcdonald", "starbucks", "subway", "kfc", "burger",
            "taco", "sushi", "dining", "meal",
        ),
    ),
    (
        "Transportation",
        (
            "uber", "lyft", "gas station", "gasoline", "fuel", "parking", "taxi",
            "transit", "bus fare", "bus pass", "greyhound", "train", "metro",
            "airport", "auto", "transport",
        ),
    ),
    (
        "Shopping",
        (
            "amazon", "store", "shop", "retail", "mall", "walmart", "target",
            "costco", "ikea", "nike", "adidas", "clothing", "apparel",
            "home depot", "lowes", "lowe's",
        ),
    ),
    (
        "Entertainment",
        (
            "movie", "netflix", "spotify", "game", "concert", "theater",
            "cinema", "youtube", "hulu", "disney", "hbo", "music", "gaming",
        ),
    ),
    (
        "Utilities",
        (
            "electric", "water", "phone", "internet", "utility", "cable",
            "wifi", "heating", "gas bill", "gas & electric",
        ),
    ),
    ("Housing", ("rent", "mortgage", "home", "house", "apartment")),
    (
        "Healthcare",
        (
            "doctor", "pharmacy", "medical", "health", "dentist", "hospital",
            "clinic", "cvs", "walgreens", "medicine", "prescription", "therapy",
        ),
    ),
    (
        "Education",
        (
            "school", "university", "college", "course", "class", "tuition",
            "textbook", "education", "learning",
        ),
    ),
    (
        "Travel",
        (
            "hotel", "flight", "airline", "vacation", "trip", "travel",
            "booking", "airbnb", "resort",
        ),
    ),
    ("Insurance", ("insurance", "premium", "policy", "coverage")),
    (
        "Investment",
        ("investment", "stock", "portfolio", "trading", "brokerage", "fund", "etf"),
    ),
    ("Salary", ("salary", "payroll", "paycheck", "income", "wage", "direct deposit")),
    ("Freelance", ("freelance", "contract", "consulting", "gig", "project")),
    ("Gifts", ("gift", "donation", "charity", "present")),
    ("Subscriptions", ("subscription", "monthly", "recurring", "membership", "plan")),
)


class RuleBasedCategorizer:
    """Keyword lookup over the fixed vocabulary. Never fails."""

    def __init__(
        self,
        rules: tuple[tuple[str, tuple[str, ...]], ...] = CATEGORY_KEYWORDS,
        default: str = DEFAULT_CATEGORY,
    ) -> None:
        self.rules = rules
        self.default = default

    def categorize(self, description: str) -> str:
        text = description.lower()
        for category, keywords in self.rules:
            if any(keyword in text for keyword in keywords):
                return category
        return self.default
