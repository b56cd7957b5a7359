"""
GraphQL documents for the remote catalog

Operation names double as dispatch keys on the stand-in server.
"""

EPISODE_FIELDS = """
      id
      series
      title
      description
      seasonNumber
      episodeNumber
      releaseDate
      imdbId
"""

LIST_EPISODES = """
  query ListEpisodes($search: String, $series: String) {
    listEpisodes(search: $search, series: $series) {%s    }
  }
""" % EPISODE_FIELDS

GET_EPISODE = """
  query GetEpisode($id: String!) {
    getEpisodeById(id: $id) {%s    }
  }
""" % EPISODE_FIELDS

GET_SEASONS = """
  query GetSeasons($series: String!) {
    getSeasons(series: $series) {
      seasonNumber
    }
  }
"""

CREATE_EPISODE = """
  mutation CreateEpisode($input: EpisodeInput!) {
    createEpisode(input: $input) {
      id
    }
  }
"""

UPDATE_EPISODE = """
  mutation UpdateEpisode($input: UpdateEpisodeInput!) {
    updateEpisode(input: $input) {
      id
    }
  }
"""

DELETE_EPISODE = """
  mutation DeleteEpisode($id: String!) {
    deleteEpisode(id: $id)
  }
"""

ON_CREATE = """
  subscription OnCreateEpisode {
    onCreateEpisode {
      id
      series
      title
    }
  }
"""

ON_UPDATE = """
  subscription OnUpdateEpisode {
    onUpdateEpisode {
      id
      series
      title
    }
  }
"""

ON_DELETE = """
  subscription OnDeleteEpisode {
    onDeleteEpisode
  }
"""
