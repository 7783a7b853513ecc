"""
Управление проектом - CLI команды.

Использование:
    python manage.py check-db
    python manage.py reset-db
    python manage.py seed-db
    python manage.py create-tables
    python manage.py serve
"""

import argparse
from datetime import datetime, timedelta

from subcatalog.config import config
from subcatalog.core.database import Database
from subcatalog.core.models import Subtitle, Upload, User
from subcatalog.core.security import hash_password


def _database() -> Database:
    config.validate()
    return Database(config.DATABASE_URL)


def check_db():
    """Проверка базы данных - показать пользователей и размер каталога"""
    database = _database()
    db = database.session()

    try:
        users = db.query(User).all()
        catalog_size = db.query(Subtitle).count()
        uploads_count = db.query(Upload).count()

        print(f"\n📊 Всего пользователей в БД: {len(users)}")
        print(f"📚 Субтитров в каталоге ({config.CATALOG_TABLE}): {catalog_size}")
        print(f"📦 Загрузок пользователей: {uploads_count}\n")
        print("=" * 60)

        if not users:
            print("⚠️  Пользователей нет.")
            print("   Зарегистрируйте пользователя через /auth/register\n")
            return

        for user in users:
            print(f"ID: {user.id}")
            print(f"Email: {user.email}")
            print(f"Username: {user.username}")
            print(f"Пароль (хеш): {user.hashed_password[:12]}...")
            print(f"Создан: {user.created_at}")
            print("-" * 60)

    finally:
        db.close()
        database.dispose()


def reset_db():
    """Сброс базы данных (удалить все таблицы и создать заново)"""
    print("⚠️  ВНИМАНИЕ: Это удалит все данные из БД!")
    confirm = input("Продолжить? (yes/no): ")

    if confirm.lower() != "yes":
        print("❌ Отменено")
        return

    database = _database()
    database.drop_all()
    database.create_all()
    database.dispose()
    print("✅ База данных сброшена\n")


def seed_db():
    """Заполнить БД тестовыми пользователями и субтитрами"""
    database = _database()
    database.create_all()
    db = database.session()

    test_users = [
        {"email": "user1@test.com", "username": "user1", "password": "password123"},
        {"email": "user2@test.com", "username": "user2", "password": "password123"},
        {"email": "admin@test.com", "username": "admin", "password": "admin12345"},
    ]

    try:
        for user_data in test_users:
            # Проверяем что пользователь ещё не существует
            existing = db.query(User).filter(User.email == user_data["email"]).first()
            if existing:
                print(f"⚠️  Пользователь {user_data['username']} уже существует")
                continue

            db.add(User(
                email=user_data["email"],
                username=user_data["username"],
                hashed_password=hash_password(user_data["password"]),
            ))
            print(f"✅ Создан пользователь: {user_data['username']}")

        if db.query(Subtitle).count() == 0:
            now = datetime.utcnow()
            sample = [
                ("The Matrix", "0133093", "english", "neo"),
                ("The Matrix Reloaded", "tt0234215", "english", "trinity"),
                ("Amélie", "0211915", "french", "audrey"),
                ("Spirited Away", "tt0245429", "japanese", "chihiro"),
                ("Breaking Bad S01E01", "0959621", "english", "heisenberg"),
                ("Untitled rip", None, "spanish", "anon"),
            ]
            for index, (title, imdb, lang, author) in enumerate(sample):
                db.add(Subtitle(
                    title=title,
                    imdb=imdb,
                    lang=lang,
                    author_name=author,
                    releases=f"{title.replace(' ', '.')}.1080p.BluRay",
                    date=now - timedelta(days=index),
                    link=f"https://example.com/subtitles/{index + 1}",
                ))
            print(f"✅ Каталог заполнен: {len(sample)} субтитров")

        db.commit()
    finally:
        db.close()
        database.dispose()
    print("\n✅ Тестовые данные добавлены\n")


def create_tables():
    """Создать таблицы в БД (если их нет)"""
    database = _database()
    database.create_all()
    database.dispose()
    print("✅ Таблицы созданы\n")


def serve():
    """Запуск API через uvicorn"""
    import uvicorn

    uvicorn.run("subcatalog.main:create_app", factory=True, host=config.API_HOST, port=config.API_PORT)


def main():
    """Главная функция - обработка команд"""
    parser = argparse.ArgumentParser(
        description="Управление проектом Subtitle Catalog API"
    )

    parser.add_argument(
        "command",
        choices=["check-db", "reset-db", "seed-db", "create-tables", "serve"],
        help="Команда для выполнения"
    )

    args = parser.parse_args()

    # Выполнение команды
    commands = {
        "check-db": check_db,
        "reset-db": reset_db,
        "seed-db": seed_db,
        "create-tables": create_tables,
        "serve": serve,
    }

    commands[args.command]()


if __name__ == "__main__":
    main()
