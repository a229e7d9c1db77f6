"""Category set created for every new user."""

from finman.core.modules.transaction.models import TransactionType

DEFAULT_CATEGORIES: list[tuple[str, TransactionType, str, str]] = [
    # (name, type, icon, color)
    ("Salary", TransactionType.INCOME, "attach_money", "#4CAF50"),
    ("Freelance", TransactionType.INCOME, "work", "#2196F3"),
    ("Investments", TransactionType.INCOME, "trending_up", "#9C27B0"),
    ("Gifts", TransactionType.INCOME, "card_giftcard", "#FF9800"),
    ("Other Income", TransactionType.INCOME, "payments", "#607D8B"),
    ("Housing", TransactionType.EXPENSE, "home", "#F44336"),
    ("Utilities", TransactionType.EXPENSE, "flash_on", "#FFC107"),
    ("Groceries", TransactionType.EXPENSE, "shopping_cart", "#4CAF50"),
    ("Food", TransactionType.EXPENSE, "restaurant", "#8BC34A"),
    ("Transportation", TransactionType.EXPENSE, "directions_car", "#3F51B5"),
    ("Entertainment", TransactionType.EXPENSE, "movie", "#9C27B0"),
    ("Dining Out", TransactionType.EXPENSE, "restaurant", "#FF5722"),
    ("Healthcare", TransactionType.EXPENSE, "favorite", "#E91E63"),
    ("Shopping", TransactionType.EXPENSE, "shopping_bag", "#795548"),
    ("Education", TransactionType.EXPENSE, "school", "#009688"),
    ("Other Expenses", TransactionType.EXPENSE, "receipt", "#9E9E9E"),
]
