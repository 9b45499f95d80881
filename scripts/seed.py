"""Seed a local database with demo users, articles, follows and bookmarks."""
import argparse
import asyncio
import random
import time

from app.database import Base, async_session, engine
from app.models import Article, ArticleBookmark, FollowRelation, Tag, User
from app.security import hash_password, token_service

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "testing", "security"]
DEMO_PASSWORD = "password123"


async def seed(small: bool = False):
    num_users = 5 if small else 50
    articles_per_user = 2 if small else 10

    print(f"Seeding: {num_users} users, {num_users * articles_per_user} articles")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        tags = [Tag(name=name) for name in TAGS]
        session.add_all(tags)

        # Hash once; every demo account shares the password.
        hashed = hash_password(DEMO_PASSWORD)
        users = [
            User(
                username=f"user_{i:03d}",
                email=f"user_{i:03d}@example.com",
                password=hashed,
                bio=f"I am demo user number {i}.",
                image="",
            )
            for i in range(num_users)
        ]
        session.add_all(users)
        await session.flush()

        articles = []
        for user in users:
            for n in range(articles_per_user):
                topic = random.choice(TAGS)
                article = Article(
                    slug=f"{user.username}-{topic}-{n}",
                    title=f"Working with {topic}, part {n}",
                    description=f"Notes on {topic}.",
                    body=f"Everything {user.username} learned about {topic}. " * 10,
                    user_id=user.id,
                )
                article.tags.extend(random.sample(tags, k=random.randint(1, 3)))
                articles.append(article)
        session.add_all(articles)
        await session.flush()

        follows = 0
        bookmarks = 0
        for user in users:
            for followee in random.sample(users, k=min(3, num_users)):
                if followee.id != user.id:
                    session.add(FollowRelation(follower_id=user.id, followee_id=followee.id))
                    follows += 1
            for article in random.sample(articles, k=min(5, len(articles))):
                session.add(ArticleBookmark(article_id=article.id, user_id=user.id))
                bookmarks += 1

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Follows: {follows}")
    print(f"  Bookmarks: {bookmarks}")
    print(f"  Login as user_000@example.com / {DEMO_PASSWORD}")
    print(f"  Token: {token_service.create_token(users[0].id)}")


def main():
    parser = argparse.ArgumentParser(description="Seed the Conduit database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
