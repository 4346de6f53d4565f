#!/usr/bin/env python3
"""
Import RSS feeds from an OPML file into the pipeline database.

Usage:
    python3 import_feeds.py [--opml-file seeds/feeds.opml] [--opportunity-type scholarship]
"""
import asyncio
import argparse
import xml.etree.ElementTree as ET
import os
import sys
from sqlalchemy import select
from models import database
from models.rss_feed import RssFeed


def parse_opml(opml_file):
    """Parse OPML file and extract feed URLs, names and optional categories."""
    feeds = []

    tree = ET.parse(opml_file)
    root = tree.getroot()

    # Find all outline elements that have xmlUrl attribute (actual feeds)
    for outline in root.findall('.//outline[@xmlUrl]'):
        feed_url = outline.get('xmlUrl')
        name = outline.get('title') or outline.get('text')

        if feed_url and name:
            feeds.append({
                'feed_url': feed_url,
                'name': name,
                'opportunity_type': outline.get('category')
            })

    return feeds


async def import_feeds(opml_file, opportunity_type='generic', auto_publish=False, session_maker=None):
    """Import feeds from OPML file into database.

    Returns:
        (imported, skipped) counts
    """
    session_maker = session_maker or database.async_session_maker
    print(f"📖 Reading OPML file: {opml_file}")

    # Parse OPML
    feeds = parse_opml(opml_file)
    print(f"✅ Found {len(feeds)} feeds in OPML file")

    # Import into database
    async with session_maker() as session:
        imported_count = 0
        skipped_count = 0

        for feed_data in feeds:
            # Check if feed already exists
            result = await session.execute(
                select(RssFeed).where(RssFeed.feed_url == feed_data['feed_url'])
            )
            existing_feed = result.scalar_one_or_none()

            if existing_feed:
                print(f"⏭️  Skipped (already exists): {feed_data['name']}")
                skipped_count += 1
            else:
                session.add(RssFeed(
                    feed_url=feed_data['feed_url'],
                    name=feed_data['name'],
                    opportunity_type=feed_data['opportunity_type'] or opportunity_type,
                    auto_publish=auto_publish,
                    enabled=True
                ))
                print(f"✅ Imported: {feed_data['name']}")
                imported_count += 1

        # Commit all changes
        await session.commit()

    print(f"\n📊 Import Summary:")
    print(f"   • Imported: {imported_count} feeds")
    print(f"   • Skipped:  {skipped_count} feeds")
    print(f"   • Total:    {len(feeds)} feeds")

    return imported_count, skipped_count


async def list_feeds():
    """List all feeds in the database."""
    async with database.async_session_maker() as session:
        result = await session.execute(
            select(RssFeed).order_by(RssFeed.name)
        )
        feeds = result.scalars().all()

        print(f"\n📋 Current Feeds ({len(feeds)} total):\n")
        for feed in feeds:
            status = "✅" if feed.enabled else "❌"
            print(f"{status} {feed.name} [{feed.opportunity_type}]")
            print(f"   {feed.feed_url}")
            print(f"   Processed: {feed.total_processed}  Published: {feed.total_published}")
            if feed.last_fetched:
                print(f"   Last fetched: {feed.last_fetched}")
            print()


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Import RSS feeds from OPML file into the pipeline database'
    )
    parser.add_argument(
        '--opml-file',
        default='seeds/feeds.opml',
        help='Path to OPML file (default: seeds/feeds.opml)'
    )
    parser.add_argument(
        '--opportunity-type',
        default='generic',
        help='Category for feeds whose outline has no category attribute'
    )
    parser.add_argument(
        '--auto-publish',
        action='store_true',
        help='Publish generated opportunities without review'
    )
    parser.add_argument(
        '--list',
        action='store_true',
        help='List all feeds in database instead of importing'
    )

    args = parser.parse_args()

    if args.list:
        await list_feeds()
    else:
        if not os.path.exists(args.opml_file):
            print(f"❌ Error: OPML file not found: {args.opml_file}")
            sys.exit(1)

        await database.init_db()
        await import_feeds(args.opml_file, args.opportunity_type, args.auto_publish)
        print("\n✅ Feed import complete!")


if __name__ == '__main__':
    asyncio.run(main())
