from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "taxdecl"
    debug: bool = False
    log_level: str = "INFO"
    default_page_size: int = 10
    max_page_size: int = 100
    filing_number_max_attempts: int = 5

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    class Config:
        env_file = ".env"
        env_prefix = "TAXDECL_"


settings = Settings()
