"""
tinyevo Visualization Module

This module renders genomes with Graphviz.

Functions:
    visualize_genome(genome): Build (and optionally display) a Graphviz digraph of a genome
"""

from typing import TYPE_CHECKING

import graphviz  # type: ignore

from tinyevo.genotype.neuron import NeuronType

if TYPE_CHECKING:
    from tinyevo.genotype import Genome

def visualize_genome(genome: 'Genome', view: bool = False) -> graphviz.Digraph:
    """
    Visualize a genome using Graphviz.

    Input, hidden and output neurons are laid out left to right in three
    clusters; each synapse is labelled with its weight and bias, and drawn
    in red when its weight is negative.

    Parameters:
        genome: The genome to draw
        view:   If True, render the graph and open it in the default viewer
                (requires the Graphviz executables)

    Returns:
        graphviz.Digraph object representing the genome
    """
    dot = graphviz.Digraph()
    dot.attr(rankdir='LR')  # Left to right layout
    dot.attr('graph', labelloc='t', label=f"activation={genome.activation_name or 'custom'}")

    # Define node colors and shapes
    common = {'color': 'black', 'style': 'filled', 'shape': 'circle', 'penwidth': '0.5',
              'fontsize': '8', 'width': '0.4', 'height': '0.4', 'fixedsize': 'true'}
    fill_colors = {
        NeuronType.INPUT : 'lightgrey',
        NeuronType.HIDDEN: 'lightblue',
        NeuronType.OUTPUT: 'white'
    }
    clusters = {
        NeuronType.INPUT : ('cluster_input',  'source', 'Inputs'),
        NeuronType.HIDDEN: ('cluster_hidden', 'same',   'Hidden'),
        NeuronType.OUTPUT: ('cluster_output', 'sink',   'Outputs')
    }

    # Create subgraphs for better layout
    for neuron_type, (name, rank, label) in clusters.items():
        neurons = [neuron for neuron in genome.neurons if neuron.type == neuron_type]
        if not neurons:
            continue
        with dot.subgraph(name=name) as cluster:
            cluster.attr(rank=rank, label=label, style='invisible')
            for neuron in neurons:
                cluster.node(str(neuron.id), label=str(neuron.id), fillcolor=fill_colors[neuron_type], **common)

    # Add synapses with weights and biases
    for synapse in sorted(genome.synapses, key=lambda s: (s.source, s.target)):
        dot.edge(str(synapse.source), str(synapse.target),
                 label=f"w={synapse.weight:.2f}\nb={synapse.bias:.2f}",
                 color='red' if synapse.weight < 0 else 'black',
                 fontsize='6', penwidth='0.5', arrowsize='0.5')

    if view:
        dot.view(cleanup=True)

    return dot
