#!/usr/bin/env python3
"""
Quick CLI runner for the Streamer Brand-Fit Evaluator.

Usage:
    python run.py                                        # Offline demo with sample streamers
    python run.py --mode api                             # Start FastAPI server
    python run.py --mode evaluate --user u1 caedrel ...  # Evaluate usernames for a user
    python run.py --mode migrate --migration remove-views
"""

import sys
import os
import argparse
import json
import logging

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config.settings import settings

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("run")

SAMPLE_COMPANY = {
    "name": "Displate",
    "description": "Metal posters for gamers and collectors",
    "industry": "gaming",
    "targetAudience": {
        "ageRange": "18-34",
        "interests": ["League of Legends", "Gaming"],
        "demographics": ["GB"],
    },
    "adContent": {
        "description": "Collectible metal posters of your favourite games",
        "tone": "playful",
        "keywords": ["gaming", "art", "collectibles"],
    },
}

SAMPLE_STREAMERS = [
    {
        "id": "caedrel",
        "name": "Caedrel",
        "description": "Professional League of Legends player turned content creator",
        "tags": ["Twitter", "Instagram", "YouTube", "Discord", "TikTok", "GB"],
        "categories": ["Gaming", "League of Legends"],
        "sponsors": [{"name": "Displate"}, {"name": "DPM.LOL"}],
        "followers": 1100000,
        "socials": [
            {"link": "https://www.twitter.com/caedrel", "website": "Twitter"},
            {"link": "https://www.instagram.com/caedrel", "website": "Instagram"},
            {"link": "http://www.youtube.com/Caedrel", "website": "YouTube"},
            {"link": "https://www.discord.gg/caedrel", "website": "Discord"},
            {"link": "https://www.tiktok.com/@caedrel", "website": "TikTok"},
        ],
    },
    {
        "id": "creative-crafts",
        "name": "Creative Crafts",
        "description": "DIY and crafting content creator focusing on sustainable materials and innovative designs.",
        "tags": ["DIY", "Crafts", "Sustainable", "Art"],
        "categories": ["Creative", "Lifestyle"],
        "sponsors": ["ArtSupply", "EcoMaterials"],
        "followers": 500000,
    },
    {
        "id": "fitlife",
        "name": "FitLife Journey",
        "description": "Fitness and wellness streamer with high engagement, focusing on holistic health.",
        "tags": ["Fitness", "Wellness", "Health", "Lifestyle"],
        "categories": ["Health", "Fitness"],
        "sponsors": ["NutriBlend", "FitGear"],
        "followers": 750000,
    },
]


def _print_report(streamers):
    from utils.pipeline import report_rows

    print("\n" + "─"*70)
    for row in report_rows(streamers):
        print(f"\n#{row['rank']} — {row['streamer']}")
        print(f"   Followers:  {row['followers']}")
        print(f"   Reach:      {row['reach']} ({row['reach_color']})")
        print(f"   Brand fit:  {row['brand_fit']} ({row['brand_fit_color']})")
        print(f"   Summary:    {row['summary']}")
    print("\n" + "─"*70 + "\n")


def demo():
    """Score the sample streamers against the sample company, fully offline."""
    from agents.recommender import generate_recommendation
    from agents.scorer import score_streamer
    from models.schemas import CompanyProfile, Streamer
    from utils.ranking import sort_streamers

    print("\n" + "="*70)
    print("  🎮 STREAMER BRAND-FIT EVALUATOR — DEMO RUN")
    print("="*70)

    company = CompanyProfile.from_dict(SAMPLE_COMPANY)
    streamers = []
    for raw in SAMPLE_STREAMERS:
        streamer = Streamer.from_dict(raw)
        score_streamer(streamer, company)
        text = generate_recommendation(streamer, company)
        streamer.ai_summary = text.ai_summary
        streamer.ai_recommendation = text.ai_recommendation
        streamers.append(streamer)

    _print_report(sort_streamers(streamers, "relevance"))
    print(f"  🔌 Start API: python run.py --mode api\n")


def evaluate(user_id, usernames, sort):
    from db.database import init_db
    from utils.pipeline import build_services, evaluate_usernames

    init_db()
    services = build_services()
    results = evaluate_usernames(services, user_id, usernames, sort=sort)
    if not results:
        print("\n❌ No streamer could be evaluated.")
        sys.exit(1)
    _print_report(results)


def migrate(name):
    from db.database import init_db
    from db.migrations import MIGRATIONS

    init_db()
    names = list(MIGRATIONS) if name == "all" else [name]
    for n in names:
        result = MIGRATIONS[n]()
        print(f"{n}: {json.dumps(result)}")


def start_api():
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    from db.migrations import MIGRATIONS

    parser = argparse.ArgumentParser(description="Streamer Brand-Fit Evaluator")
    parser.add_argument(
        "--mode",
        choices=["demo", "api", "evaluate", "migrate"],
        default="demo",
        help="Run mode: demo | api | evaluate | migrate",
    )
    parser.add_argument("--user", default="local", help="User id to evaluate for")
    parser.add_argument("--sort", default="relevance", help="relevance | brandFit | reach | followers")
    parser.add_argument("--migration", default="all", choices=["all", *MIGRATIONS])
    parser.add_argument("usernames", nargs="*", help="Twitch usernames or channel URLs")
    args = parser.parse_args()

    if args.mode == "demo":
        demo()
    elif args.mode == "api":
        start_api()
    elif args.mode == "evaluate":
        if not args.usernames:
            parser.error("evaluate mode needs at least one username")
        evaluate(args.user, args.usernames, args.sort)
    elif args.mode == "migrate":
        migrate(args.migration)
