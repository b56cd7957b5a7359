"""
Seed data

Episodes the offline store starts with (and returns to on reset), and
the curated shows and episodes of the popular-episodes panel.
"""
from datetime import date
from typing import List

from episode_catalog.schemas.episode import EpisodeRecord
from episode_catalog.schemas.metadata import PopularEpisode, PopularShow

_STRANGER_THINGS_IMDB = "tt4574334"

_SEED_ROWS = [
    ("1", 1, 1, "The Vanishing of Will Byers", date(2016, 7, 15),
     "In 1980s Indiana, a group of young friends witness supernatural forces and "
     "secret government exploits. As they search for answers, the children unravel "
     "a series of extraordinary mysteries."),
    ("2", 1, 2, "The Weirdo on Maple Street", date(2016, 7, 15),
     "Lucas, Mike and Dustin try to talk to the girl they found in the woods. Hopper "
     "questions an anxious Joyce about an unsettling phone call."),
    ("3", 1, 3, "Holly, Jolly", date(2016, 7, 15),
     "An increasingly concerned Nancy looks for Barb and finds out what Jonathan's "
     "been up to. Joyce is convinced Will is trying to talk to her."),
    ("4", 1, 4, "The Body", date(2016, 7, 15),
     "Refusing to believe Will is dead, Joyce tries to connect with her son. The boys "
     "give Eleven a makeover. Nancy and Jonathan form an unlikely alliance."),
    ("5", 1, 5, "The Flea and the Acrobat", date(2016, 7, 15),
     "Hopper breaks into the lab while Nancy and Jonathan confront the force that took "
     "Will. The boys ask Mr. Clarke how to travel to another dimension."),
    ("6", 1, 6, "The Monster", date(2016, 7, 15),
     "A frantic Jonathan looks for Nancy in the darkness, but Steve's looking for her "
     "too. Hopper and Joyce uncover the truth about the lab's experiments."),
    ("7", 1, 7, "The Bathtub", date(2016, 7, 15),
     "Eleven struggles to reach Will, while Lucas warns that \"the bad men are coming.\" "
     "Nancy and Jonathan show the police what Jonathan caught on camera."),
    ("8", 1, 8, "The Upside Down", date(2016, 7, 15),
     "Dr. Brenner holds Hopper and Joyce for questioning while the boys wait with "
     "Eleven in the gym. Back at Will's, Nancy and Jonathan prepare for battle."),
    ("9", 2, 1, "MADMAX", date(2017, 10, 27),
     "As the town preps for Halloween, a high-scoring rival shakes things up at the "
     "arcade, and a skeptical Hopper inspects a field of rotting pumpkins."),
    ("10", 2, 2, "Trick or Treat, Freak", date(2017, 10, 27),
     "After Will sees something terrible on trick-or-treat night, Mike wonders whether "
     "Eleven's still out there. Nancy wrestles with the truth about Barb."),
]


def default_episodes() -> List[EpisodeRecord]:
    """Fresh copies of the seed episodes"""
    return [
        EpisodeRecord(
            id=record_id,
            series="Stranger Things",
            title=title,
            description=description,
            season_number=season,
            episode_number=episode,
            release_date=released,
            imdb_id=_STRANGER_THINGS_IMDB,
        )
        for record_id, season, episode, title, released, description in _SEED_ROWS
    ]


_POPULAR_SHOWS = [
    ("Stranger Things", _STRANGER_THINGS_IMDB),
    ("The Crown", "tt4786824"),
    ("Bridgerton", "tt8740790"),
    ("Squid Game", "tt10919420"),
    ("Dark", "tt5753856"),
    ("Money Heist", "tt6468322"),
]

# show, season, episode, episode title
_POPULAR_EPISODES = [
    ("Stranger Things", 1, 1, "The Vanishing of Will Byers"),
    ("Stranger Things", 1, 8, "The Upside Down"),
    ("The Crown", 1, 1, "Wolferton Splash"),
    ("The Crown", 2, 1, "Misadventure"),
    ("Bridgerton", 1, 1, "Diamond of the First Water"),
    ("Bridgerton", 1, 5, "The Duke and I"),
    ("Squid Game", 1, 1, "Red Light, Green Light"),
    ("Squid Game", 1, 6, "Gganbu"),
    ("Dark", 1, 1, "Secrets"),
    ("Dark", 2, 1, "Beginnings and Endings"),
    ("Money Heist", 1, 1, "Efectuar lo acordado"),
    ("Money Heist", 2, 1, "Se acabaron las máscaras"),
]


def popular_shows() -> List[PopularShow]:
    return [PopularShow(title=title, imdb_id=imdb_id) for title, imdb_id in _POPULAR_SHOWS]


def popular_episodes() -> List[PopularEpisode]:
    imdb_ids = dict(_POPULAR_SHOWS)
    return [
        PopularEpisode(
            show_title=show,
            imdb_id=imdb_ids[show],
            season=season,
            episode=episode,
            title=title,
        )
        for show, season, episode, title in _POPULAR_EPISODES
    ]
