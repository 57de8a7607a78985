import eztopo


topology = eztopo.read("examples/data/us-states.topojson")
states = eztopo.convert(topology, "states")
print(states.geom_type, len(states.geometries))

result = eztopo.to_geojson(topology, "/tmp/us-states.geojson", objects="states")
print(result)
