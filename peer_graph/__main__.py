import sys

from peer_graph.viewer import main

sys.exit(main())
