from pydantic import BaseModel


class SetupResult(BaseModel):
    categories_created: int
    accounts_created: int
    total_categories: int
    level_1_categories: int
    level_2_categories: int
    level_3_categories: int
    total_accounts: int
