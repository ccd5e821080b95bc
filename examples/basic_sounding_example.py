#Script to draw a skew-T with PySkewt
#The diagram comes back as paths in a unit square, here matplotlib draws them
#with y flipped so the surface sits at the bottom.

#Load PySkewt
from pyskewt.pyskewt import PySkewt

#Import other necessary modules
import matplotlib.pyplot as pp

#Location of test sounding
sounding_path = "../tests/data/san-op40.txt"

#Create sounding object
with open(sounding_path) as fn:
    sonde = PySkewt(fn.read(), "RAOB")

#Print out the available variables
print("Sounding variables are:")
for k in sorted(sonde.sounding.keys()):
    print(k)

#Lay out the diagram
geometry = sonde.geometry(pressure_range=(100.0, 1050.0), skew=1.0)

#Function to draw one path
def draw(ax, path, **style):
    for stroke in path.strokes:
        xs = [pt[0] for pt in stroke]
        ys = [1.0-pt[1] for pt in stroke]
        ax.plot(xs, ys, **style)

#Create the figure
fig, ax = pp.subplots(figsize=(8, 8))
styles = {"isobars":{"color":"black", "lw":0.5}, "altitude_isobars":{"color":"gray", "lw":0.5, "ls":":"},
    "isotherms":{"color":"tab:blue", "lw":0.5}, "dry_adiabats":{"color":"tab:orange", "lw":0.5},
    "moist_adiabats":{"color":"tab:green", "lw":0.5, "ls":"--"}, "isohumes":{"color":"tab:purple", "lw":0.5, "ls":":"}}
for family, style in styles.items():
    for path in geometry[family].values():
        draw(ax, path, **style)
if (geometry["temperature"] is not None):
    draw(ax, geometry["temperature"], color="red", lw=2)
if (geometry["dew_point"] is not None):
    draw(ax, geometry["dew_point"], color="green", lw=2)

ax.set_xlim(0, 1)
ax.set_ylim(0, 1)
ax.set_xticks([])
ax.set_yticks([])
ax.set_title("{} {:%Y-%m-%d %H}Z".format(sonde.profile.metadata["station_id"], sonde.profile.time))

#Display the SkewT
pp.show()
