# constants.py

# ===== Статусы заявок =====
# like / pass: отправляет тот, кто смотрит ленту;
# accept / reject: решение получателя лайка.
STATUS_LIKE = "like"
STATUS_PASS = "pass"
STATUS_ACCEPT = "accept"
STATUS_REJECT = "reject"

SEND_ACTIONS = (STATUS_LIKE, STATUS_PASS)
REVIEW_DECISIONS = (STATUS_ACCEPT, STATUS_REJECT)

# ===== Лента =====
FEED_DEFAULT_PAGE = 1
FEED_DEFAULT_LIMIT = 10
FEED_MAX_LIMIT = 50
# offset = (page - 1) * limit должен влезать в INTEGER SQLite (2**63 - 1)
FEED_MAX_PAGE = (2**63 - 1) // FEED_MAX_LIMIT + 1

# ===== Профиль =====
GENDER_OPTIONS = [
    ("Мужской", "male"),
    ("Женский", "female"),
    ("Другое", "others"),
]
GENDER_LABELS = {code: label for (label, code) in GENDER_OPTIONS}
GENDER_CODES = tuple(code for (_, code) in GENDER_OPTIONS)

FIRST_NAME_MIN_LEN = 4
FIRST_NAME_MAX_LEN = 40
LAST_NAME_MAX_LEN = 40
AGE_MIN = 18
AGE_MAX = 120
ABOUT_MAX_LEN = 300

# Поля, которые пользователь может менять сам (id и telegram_id не меняются никогда)
EDITABLE_PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "age",
    "gender",
    "image",
    "about",
)

# ===== Кнопки главного меню =====
MENU_FEED = "🔥 Лента"
MENU_REQUESTS = "💌 Входящие"
MENU_CONNECTIONS = "🤝 Мэтчи"
MENU_PROFILE = "👤 Профиль"
